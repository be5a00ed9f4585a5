"""Driver configurations for the supported virtualisation back ends."""

from __future__ import annotations

import os
from typing import Any, Callable

from kubevm import constants
from kubevm.constants import supported_vm_drivers
from kubevm.machine_config import MachineConfig

# Ensures the VM gets the same IP across deletes and starts.
XHYVE_UUID = "57FD2012-FA4A-4FF7-AEFF-26E1A1D76847"

DriverConfig = dict[str, Any]


def _base_driver() -> DriverConfig:
    return {"MachineName": constants.MACHINE_NAME, "StorePath": constants.MINIPATH}


def _machine_dir(*parts: str) -> str:
    return os.path.join(constants.MINIPATH, "machines", constants.MACHINE_NAME, *parts)


def create_virtualbox_host(config: MachineConfig) -> DriverConfig:
    """Return the VirtualBox driver configuration."""
    return {
        **_base_driver(),
        "Boot2DockerURL": config.iso_file_uri(),
        "Memory": config.memory,
        "CPU": config.cpus,
        "DiskSize": int(config.disk_size),
        "HostOnlyCIDR": config.host_only_cidr,
    }


def create_vmware_fusion_host(config: MachineConfig) -> DriverConfig:
    """Return the VMware Fusion driver configuration."""
    return {
        **_base_driver(),
        "Boot2DockerURL": config.iso_file_uri(),
        "Memory": config.memory,
        "CPU": config.cpus,
        "SSHPort": 22,
        "ISO": _machine_dir("boot2docker.iso"),
    }


def create_xhyve_host(config: MachineConfig) -> DriverConfig:
    """Return the xhyve driver configuration."""
    return {
        **_base_driver(),
        "Memory": config.memory,
        "CPU": config.cpus,
        "Boot2DockerURL": config.iso_file_uri(),
        "BootCmd": (
            "loglevel=3 user=docker console=ttyS0 console=tty0 noembed nomodeset "
            "norestore waitusb=10 base host=" + constants.MACHINE_NAME
        ),
        "DiskSize": int(config.disk_size),
        "Virtio9p": True,
        "Virtio9pFolder": "/Users",
        "UUID": XHYVE_UUID,
    }


def create_kvm_host(config: MachineConfig) -> DriverConfig:
    """Return the KVM driver configuration."""
    return {
        **_base_driver(),
        "Memory": config.memory,
        "CPU": config.cpus,
        "Network": "default",
        "PrivateNetwork": "docker-machines",
        "Boot2DockerURL": config.iso_file_uri(),
        "DiskSize": config.disk_size,
        "DiskPath": _machine_dir(f"{constants.MACHINE_NAME}.img"),
        "ISO": _machine_dir("boot2docker.iso"),
        "CacheMode": "default",
        "IOMode": "threads",
    }


def create_hyperv_host(config: MachineConfig) -> DriverConfig:
    """Return the Hyper-V driver configuration."""
    return {
        **_base_driver(),
        "Boot2DockerURL": config.iso_file_uri(),
        "MemSize": config.memory,
        "CPU": config.cpus,
        "DiskSize": int(config.disk_size),
        "SSHUser": "docker",
    }


_FACTORIES: dict[str, Callable[[MachineConfig], DriverConfig]] = {
    "virtualbox": create_virtualbox_host,
    "vmwarefusion": create_vmware_fusion_host,
    "kvm": create_kvm_host,
    "xhyve": create_xhyve_host,
    "hyperv": create_hyperv_host,
}


def create_driver_config(config: MachineConfig, platform: str | None = None) -> DriverConfig:
    """Return the configuration for the driver named in config.

    The platform defaults to the running one. Raises ValueError for an
    unknown driver or one that the platform does not support.
    """
    factory = _FACTORIES.get(config.vm_driver)
    if factory is None:
        raise ValueError(f"Unsupported driver: {config.vm_driver}")
    if config.vm_driver not in supported_vm_drivers(platform):
        raise ValueError(f"{config.vm_driver} not supported")
    return factory(config)