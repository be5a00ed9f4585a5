from kubevm import constants
from kubevm.commands import (
    LOCALKUBE_STATUS_COMMAND,
    LOGS_COMMAND,
    STOP_COMMAND,
    get_start_command,
)
from kubevm.machine_config import KubernetesConfig


def test_start_command_custom_values():
    flag_map = {"v": "10", "vmodule": "cluster*=5"}
    command = get_start_command(KubernetesConfig(), flag_map)
    for flag, val in flag_map.items():
        assert f"--{flag} {val}" in command


def test_start_command_ignores_unknown_flags():
    command = get_start_command(KubernetesConfig(), {"alsologtostderr": "true"})
    assert "alsologtostderr" not in command


def test_start_command_without_flags():
    command = get_start_command(KubernetesConfig(node_ip="127.0.0.1"))
    assert "--v " not in command
    assert "--node-ip=127.0.0.1" in command
    assert "--generate-certs=false --logtostderr=true" in command
    assert constants.LOCALKUBE_PID_PATH in command
    assert constants.REMOTE_LOCALKUBE_ERR_PATH in command
    assert constants.REMOTE_LOCALKUBE_OUT_PATH in command


def test_start_command_runtime_and_plugin():
    command = get_start_command(
        KubernetesConfig(container_runtime="rkt", network_plugin="cni")
    )
    assert "--container-runtime=rkt" in command
    assert "--network-plugin=cni" in command


def test_stop_command_kills_started_binary():
    command = get_start_command(KubernetesConfig())
    assert "/usr/local/bin/localkube " in command
    assert STOP_COMMAND == "sudo killall localkube || true"


def test_logs_command_names_both_logs():
    assert constants.REMOTE_LOCALKUBE_ERR_PATH in LOGS_COMMAND
    assert constants.REMOTE_LOCALKUBE_OUT_PATH in LOGS_COMMAND
    assert LOGS_COMMAND.startswith("tail -n +1 ")


def test_status_command_reads_pid_file_written_by_start():
    command = get_start_command(KubernetesConfig())
    assert f"echo $! > {constants.LOCALKUBE_PID_PATH}" in command
    assert f"cat {constants.LOCALKUBE_PID_PATH}" in LOCALKUBE_STATUS_COMMAND
    assert 'echo "Running"' in LOCALKUBE_STATUS_COMMAND
    assert 'echo "Stopped"' in LOCALKUBE_STATUS_COMMAND