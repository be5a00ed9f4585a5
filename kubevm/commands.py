"""Shell commands run on the VM to control localkube."""

from __future__ import annotations

from typing import Mapping

from kubevm import constants
from kubevm.machine_config import KubernetesConfig

# Kill any running instances.
STOP_COMMAND = "sudo killall localkube || true"

_START_COMMAND_TEMPLATE = """
# Run with nohup so it stays up. Redirect logs to useful places.
sudo sh -c 'PATH=/usr/local/sbin:$PATH nohup /usr/local/bin/localkube {flags} --generate-certs=false --logtostderr=true --node-ip={node_ip} > {out} 2> {err} < /dev/null & echo $! > {pid} &'
"""

LOGS_COMMAND = (
    f"tail -n +1 {constants.REMOTE_LOCALKUBE_ERR_PATH} "
    f"{constants.REMOTE_LOCALKUBE_OUT_PATH}"
)

LOCALKUBE_STATUS_COMMAND = f"""
if ps $(cat {constants.LOCALKUBE_PID_PATH}) 2>&1 1>/dev/null; then
  echo "Running"
else
  echo "Stopped"
fi
"""


def get_start_command(
    kubernetes_config: KubernetesConfig,
    log_flags: Mapping[str, str] | None = None,
) -> str:
    """Return the command that starts localkube on the VM.

    log_flags holds logging flags that were set away from their defaults;
    only those listed in constants.LOG_FLAGS are passed along.
    """
    log_flags = log_flags or {}
    flag_vals = [
        f"--{name} {log_flags[name]}"
        for name in constants.LOG_FLAGS
        if log_flags.get(name) is not None
    ]
    if kubernetes_config.container_runtime:
        flag_vals.append("--container-runtime=" + kubernetes_config.container_runtime)
    if kubernetes_config.network_plugin:
        flag_vals.append("--network-plugin=" + kubernetes_config.network_plugin)

    return _START_COMMAND_TEMPLATE.format(
        flags=" ".join(flag_vals),
        node_ip=kubernetes_config.node_ip,
        out=constants.REMOTE_LOCALKUBE_ERR_PATH,
        err=constants.REMOTE_LOCALKUBE_OUT_PATH,
        pid=constants.LOCALKUBE_PID_PATH,
    )