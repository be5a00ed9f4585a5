import io
import json
import threading

import pytest
import responses

from kubevm import constants, util
from kubevm.version import get_version


def error_generator(n):
    """Return a callable that raises n times, then succeeds forever."""
    count = 0

    def call():
        nonlocal count
        if count < n:
            count += 1
            raise RuntimeError("Error!")
        return "ok"

    return call


def raised_error(message):
    try:
        raise RuntimeError(message)
    except RuntimeError as exc:
        return exc


def test_retry_resumes_shared_generator():
    f = error_generator(3)
    with pytest.raises(RuntimeError) as info:
        util.retry(2, f)
    assert str(info.value) == "Error!\nError!"
    assert util.retry(2, f) == "ok"


def test_retry_succeeds():
    assert util.retry(5, error_generator(4)) == "ok"


def test_retry_fails():
    with pytest.raises(RuntimeError) as info:
        util.retry(4, error_generator(5))
    assert str(info.value) == "\n".join(["Error!"] * 4)


def test_retry_after_zero_attempts():
    assert util.retry_after(0, error_generator(1), 0) is None


@pytest.mark.parametrize(
    "given, expected",
    [
        ("v1.3.0", "https://storage.googleapis.com/minikube/k8sReleases/v1.3.0/localkube-linux-amd64"),
        ("v1.3.3", "https://storage.googleapis.com/minikube/k8sReleases/v1.3.3/localkube-linux-amd64"),
        ("http://www.example.com/my-localkube", "http://www.example.com/my-localkube"),
    ],
)
def test_get_localkube_download_url(given, expected):
    url = util.get_localkube_download_url(given, constants.LOCALKUBE_LINUX_FILENAME)
    assert url == expected


@pytest.mark.parametrize("given", ["abc", "1.2.3.4"])
def test_get_localkube_download_url_errors(given):
    with pytest.raises(ValueError):
        util.get_localkube_download_url(given, constants.LOCALKUBE_LINUX_FILENAME)


def test_multi_error():
    m = util.MultiError()
    m.collect(RuntimeError("Error 1"))
    m.collect(RuntimeError("Error 2"))
    m.collect(None)
    assert str(m.to_error()) == "Error 1\nError 2"
    assert util.MultiError().to_error() is None


def test_pad():
    assert util.pad("x") == "\nx\n"


def test_until_reports_success_and_failure():
    done = threading.Event()
    calls = []

    def fn():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("boom")
        done.set()

    out = io.StringIO()
    util.until(fn, out, "svc", 0, done)
    assert len(calls) == 2
    assert out.getvalue() == (
        "\nsvc: Exit with error: boom\n" "\nsvc: Exited with no errors.\n\n"
    )


def test_until_stops_when_done():
    done = threading.Event()
    done.set()
    out = io.StringIO()
    util.until(error_generator(0), out, "svc", 0, done)
    assert out.getvalue() == ""


def test_can_read_file(tmp_path):
    path = tmp_path / "f"
    path.write_text("data")
    assert util.can_read_file(path) is True
    assert util.can_read_file(tmp_path / "missing") is False


def test_is_directory(tmp_path):
    path = tmp_path / "f"
    path.write_text("data")
    assert util.is_directory(tmp_path) is True
    assert util.is_directory(path) is False
    with pytest.raises(FileNotFoundError):
        util.is_directory(tmp_path / "missing")


def test_format_error_none():
    with pytest.raises(ValueError):
        util.format_error(None)


def test_format_error_without_traceback():
    with pytest.raises(ValueError):
        util.format_error(RuntimeError("Not a valid error to format as there is no stacktrace"))


def test_format_error():
    out = util.format_error(raised_error("TestFormatError 1"))
    lines = out.rstrip("\n").split("\n")
    assert lines[0] == "TestFormatError 1"
    assert len(lines) >= 2
    assert all(line.startswith("\tat ") for line in lines[1:])
    assert "test_util.py:" in out
    assert out.endswith("\n")


def test_marshall_error():
    msg = util.format_error(raised_error("TestMarshallError 1"))
    data = util.marshall_error(msg, "default", get_version())
    assert json.loads(data) == {
        "message": msg,
        "serviceContext": {"service": "default", "version": get_version()},
    }


def test_upload_error():
    url = "http://reports.example.com/submit"
    msg = util.format_error(raised_error("TestUploadError 1"))
    data = util.marshall_error(msg, "default", get_version())
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, url, body="Hello, world!", status=200)
        assert util.upload_error(data, url) is None
        assert rsps.calls[0].request.headers["Content-Type"] == "application/json"
        assert rsps.calls[0].request.body == data


def test_upload_error_bad_status():
    url = "http://reports.example.com/submit"
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, url, body="failed to write report", status=400)
        with pytest.raises(RuntimeError):
            util.upload_error(b"{}", url)


def test_report_error():
    url = "http://reports.example.com/submit"
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, url, status=200)
        util.report_error(raised_error("TestReportError"), url)
        body = json.loads(rsps.calls[0].request.body)
    assert body["serviceContext"] == {"service": "default", "version": get_version()}
    assert body["message"].startswith("TestReportError\n")