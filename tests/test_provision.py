from kubevm.provision import (
    AuthOptions,
    BuildrootProvisioner,
    EngineOptions,
    set_remote_auth_options,
)


class FakeDriver:
    def __init__(self, name="virtualbox"):
        self.name = name

    def driver_name(self):
        return self.name


def _provisioner(**engine):
    return BuildrootProvisioner(
        driver=FakeDriver(),
        auth_options=AuthOptions(
            ca_cert_remote_path="/etc/docker/ca.pem",
            server_cert_remote_path="/etc/docker/server.pem",
            server_key_remote_path="/etc/docker/server-key.pem",
        ),
        engine_options=EngineOptions(**engine),
    )


def test_str():
    assert str(_provisioner()) == "buildroot"


def test_generate_docker_options_exec_start():
    provisioner = _provisioner()
    options = provisioner.generate_docker_options(2376)
    assert options.engine_options_path == provisioner.daemon_options_file
    expected = (
        "ExecStart=/usr/bin/docker daemon -H tcp://0.0.0.0:2376 "
        "-H unix:///var/run/docker.sock --tlsverify "
        "--tlscacert /etc/docker/ca.pem --tlscert /etc/docker/server.pem "
        "--tlskey /etc/docker/server-key.pem --label provider=virtualbox \n"
    )
    assert expected in options.engine_options
    assert options.engine_options.startswith("[Unit]\n")
    assert "ExecReload=/bin/kill -s HUP $MAINPID\n" in options.engine_options


def test_generate_docker_options_appends_provider_label():
    provisioner = _provisioner(labels=["env=dev"])
    provisioner.generate_docker_options(2376)
    assert provisioner.engine_options.labels == ["env=dev", "provider=virtualbox"]


def test_generate_docker_options_includes_registries_and_flags():
    provisioner = _provisioner(
        insecure_registry=["10.0.0.0/24"],
        registry_mirror=["mirror.example.com"],
        arbitrary_flags=["debug"],
    )
    text = provisioner.generate_docker_options(2376).engine_options
    line = next(l for l in text.splitlines() if l.startswith("ExecStart="))
    assert line.endswith(
        "--label provider=virtualbox --insecure-registry 10.0.0.0/24 "
        "--registry-mirror mirror.example.com --debug "
    )


def test_generate_docker_options_escapes_values():
    provisioner = _provisioner(labels=['a"b<c'])
    text = provisioner.generate_docker_options(2376).engine_options
    assert "--label a&#34;b&lt;c " in text
    assert 'a"b<c' not in text


def test_set_remote_auth_options():
    provisioner = BuildrootProvisioner(
        driver=FakeDriver(),
        auth_options=AuthOptions(cert_dir="/home/user/.minikube"),
        docker_options_dir="/opt/docker",
    )
    auth = set_remote_auth_options(provisioner)
    assert auth.ca_cert_remote_path == "/opt/docker/ca.pem"
    assert auth.server_cert_remote_path == "/opt/docker/server.pem"
    assert auth.server_key_remote_path == "/opt/docker/server-key.pem"
    assert auth.cert_dir == "/home/user/.minikube"
    assert provisioner.auth_options.ca_cert_remote_path == ""