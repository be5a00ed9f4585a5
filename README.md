# kubevm

`kubevm` is a library of building blocks for running a single-node Kubernetes
cluster (`localkube`) inside a local virtual machine:

- version information and shared paths and defaults (`kubevm.version`,
  `kubevm.constants`);
- retries, error collection and error reporting (`kubevm.util`);
- SSH connections, remote commands and SCP-style file copies
  (`kubevm.sshutil`);
- rendering of the Docker service unit for the Buildroot VM image
  (`kubevm.provision`);
- machine and Kubernetes settings, and caching of the VM image
  (`kubevm.machine_config`);
- driver configurations for VirtualBox, VMware Fusion, xhyve, KVM and Hyper-V
  (`kubevm.drivers`);
- the shell commands that start, stop and inspect `localkube` in the VM
  (`kubevm.commands`);
- caching of custom `localkube` binaries and their transfer to the VM
  (`kubevm.localkube_cache`);
- files to copy into the VM, from disk or from memory (`kubevm.assets`);
- reading and writing Kubernetes client configuration files
  (`kubevm.kubeconfig`);
- checking for newer releases and listing the available Kubernetes versions
  (`kubevm.notify`, `kubevm.kubernetes_versions`).

## Requirements

Python 3.10 or later, with `paramiko`, `pyyaml`, `requests` and `semver`. The
`test` extra adds `pytest` and `responses`.

## Examples

### Version information and paths

```python
from kubevm import constants, version

print(version.get_version())          # "v0.0.0-unset" for development builds
print(version.get_semver_version())   # the same value as a semver.Version

print(constants.make_mini_path("cache", "iso"))    # under ~/.minikube
print(constants.supported_vm_drivers("linux"))     # ("virtualbox", "kvm")
```

`supported_vm_drivers` defaults to the running platform and raises
`ValueError` for a platform it does not know.

### Retrying and collecting errors

```python
from kubevm import util

outcomes = iter([RuntimeError("not yet"), RuntimeError("still not"), None])

def check():
    outcome = next(outcomes)
    if outcome is not None:
        raise outcome
    return "ready"

print(util.retry(5, check))   # "ready"; raises only if every attempt fails

errors = util.MultiError()
errors.collect(ValueError("Error 1"))
errors.collect(ValueError("Error 2"))
print(errors.to_error())      # "Error 1\nError 2"
```

`util.retry_after` does the same with a pause between attempts.
`util.get_localkube_download_url` turns `"v1.3.0"` or `"1.3.0"` into the
download location of that `localkube` release, returns an absolute URL
unchanged, and raises `ValueError` for anything else.

### Machine settings and drivers

```python
from kubevm import drivers
from kubevm.machine_config import MachineConfig

config = MachineConfig(minikube_iso=constants.DEFAULT_ISO_URL,
                       memory=2048, cpus=2, disk_size=20000,
                       vm_driver="virtualbox")
print(config.iso_file_uri())             # file:// URI of the cached image
if config.should_cache_minikube_iso():
    config.cache_minikube_iso_from_url() # checks the default image's SHA-256

print(drivers.create_driver_config(config, "linux"))
```

`create_driver_config` returns the driver's settings as a dictionary and raises
`ValueError` for an unknown driver or one the platform does not support.

### Commands for the VM

```python
from kubevm import commands
from kubevm.machine_config import KubernetesConfig

print(commands.get_start_command(KubernetesConfig(node_ip="192.168.99.100"),
                                 {"v": "10"}))
print(commands.STOP_COMMAND)
print(commands.LOCALKUBE_STATUS_COMMAND)
```

### Copying files to the VM

```python
from kubevm import sshutil
from kubevm.localkube_cache import LocalkubeCacher

client = sshutil.new_ssh_client(driver)   # driver supplies host, port, user, key
sshutil.run_command(client, "uname -a")
sshutil.transfer(b"hello", 5, "/tmp", "greeting", "0644", client)

LocalkubeCacher("v1.3.0").update_from_uri(client)
```

`kubevm.assets.addons_dir_assets(path)` returns a `FileAsset` for every file
under a directory, bound for `/etc/kubernetes/addons` on the VM.

### Docker service unit

```python
from kubevm.provision import BuildrootProvisioner, set_remote_auth_options

provisioner = BuildrootProvisioner(driver)   # driver has driver_name()
provisioner.auth_options = set_remote_auth_options(provisioner)
options = provisioner.generate_docker_options(2376)
print(options.engine_options_path)
```

### Kubernetes client configuration

```python
from kubevm import kubeconfig

config = kubeconfig.read_config_or_new("kube/config")  # empty if missing
config.clusters["minikube"] = kubeconfig.Cluster(server="https://192.168.99.100:8443")
kubeconfig.write_config(config, "kube/config")          # written with mode 0600
```

### Release checks

```python
import sys
from kubevm import kubernetes_versions, notify

kubernetes_versions.print_kubernetes_versions_from_gcs(sys.stdout)
notify.maybe_print_update_text_from_github(sys.stdout, notify.NotifySettings())
```

## What the package does not do

`kubevm` has no command-line program and no code that drives a machine API:
it does not create, start, stop or delete the VM, nor report its status. It
does not generate the CA or API-server certificates either. It supplies the
pieces such a tool is built from.