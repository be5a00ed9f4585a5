import io
import os
from types import SimpleNamespace

import pytest
import requests
import responses

from kubevm import constants
from kubevm.localkube_cache import LocalkubeCacher


class _FakeChannel:
    def __init__(self, client):
        self._client = client

    def exec_command(self, cmd):
        self._client.commands.append(cmd)

    def sendall(self, data):
        self._client.transferred += data

    def shutdown_write(self):
        pass

    def recv_exit_status(self):
        return 0

    def close(self):
        pass


class _FakeSSHClient:
    def __init__(self):
        self.commands = []
        self.transferred = bytearray()

    def exec_command(self, cmd):
        self.commands.append(cmd)
        return None, SimpleNamespace(channel=_FakeChannel(self)), None

    def get_transport(self):
        return SimpleNamespace(open_session=lambda: _FakeChannel(self))


@pytest.fixture
def minipath(tmp_path, monkeypatch):
    monkeypatch.setattr(constants, "MINIPATH", str(tmp_path))
    os.makedirs(tmp_path / "cache" / "localkube")
    return tmp_path


@pytest.mark.parametrize(
    "version",
    [
        "v1.3.3",
        "1.3.0",
        "http://test-url.localkube.com/localkube-binary",
        "file:///test/dir/to/localkube-binary",
    ],
)
def test_is_localkube_cached(minipath, version):
    cacher = LocalkubeCacher(version)
    assert cacher.is_cached() is False
    cacher.cache(io.BytesIO(b"test-localkube-binary-data"))
    assert cacher.is_cached() is True
    with open(cacher.cache_filepath(), "rb") as handle:
        assert handle.read() == b"test-localkube-binary-data"


def test_cache_filepath_escapes_url(minipath):
    cacher = LocalkubeCacher("http://a.example.com/x y")
    expected = os.path.join(
        str(minipath), "cache", "localkube",
        "localkube-http%3A%2F%2Fa.example.com%2Fx+y",
    )
    assert cacher.cache_filepath() == expected


def test_update_kubernetes_version_from_url(minipath):
    url = "http://localkube.example.com/localkube"
    client = _FakeSSHClient()
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, url, body="hello")
        LocalkubeCacher(url).update_from_uri(client)
    assert b"hello" in client.transferred
    assert client.transferred.startswith(b"C0777 5 localkube\n")
    assert "sudo scp -t /usr/local/bin" in client.commands
    assert "sudo rm -f /usr/local/bin/localkube" in client.commands


def test_update_from_url_uses_cache(minipath):
    url = "http://localkube.example.com/cached"
    cacher = LocalkubeCacher(url)
    cacher.cache(io.BytesIO(b"cached-binary"))
    client = _FakeSSHClient()
    with responses.RequestsMock():
        cacher.update_from_uri(client)
    assert b"cached-binary" in client.transferred


def test_update_from_file(minipath, tmp_path):
    binary = tmp_path / "my-localkube"
    binary.write_bytes(b"local-file-binary")
    client = _FakeSSHClient()
    LocalkubeCacher("file://" + binary.as_posix()).update_from_uri(client)
    assert b"local-file-binary" in client.transferred


def test_update_from_missing_file(minipath, tmp_path):
    missing = (tmp_path / "absent").as_posix()
    with pytest.raises(RuntimeError, match="Error reading localkube file"):
        LocalkubeCacher("file://" + missing).update_from_uri(_FakeSSHClient())


def test_download_bad_version_fails(minipath):
    with pytest.raises(RuntimeError, match="Max error attempts"):
        LocalkubeCacher("abc").download_and_cache()


def test_download_connection_error_fails(minipath):
    url = "http://localkube.example.com/down"
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, url, body=requests.ConnectionError("refused"))
        with pytest.raises(RuntimeError, match="downloading localkube"):
            LocalkubeCacher(url).download_and_cache()
    assert LocalkubeCacher(url).is_cached() is False