"""Test HTTPS image download."""

import threading
import time

import pytest
import requests

from edge_deployer.core.errors import ImageFetchError
from edge_deployer.images import downloader
from edge_deployer.images.downloader import ImageDownloader, download_image


class FakeResponse:
    def __init__(self, status_code=200, chunks=(b"abc", b"def")):
        self.status_code = status_code
        self._chunks = chunks
        self.closed = False

    def iter_content(self, chunk_size):
        yield from self._chunks

    def __enter__(self):
        return self

    def close(self):
        self.closed = True

    def __exit__(self, *exc):
        self.closed = True
        return False


class StalledResponse(FakeResponse):
    """Sends one chunk, then hangs inside the next until closed."""

    def __init__(self, error_on_close=None):
        super().__init__()
        self._released = threading.Event()
        self._error_on_close = error_on_close

    def iter_content(self, chunk_size):
        yield b"abc"
        self._released.wait(5)
        if self._error_on_close:
            raise self._error_on_close

    def close(self):
        super().close()
        self._released.set()


@pytest.fixture
def fake_get(monkeypatch):
    calls = []
    state = {"response": FakeResponse(), "error": None}

    def get(url, stream, timeout):
        calls.append((url, stream, timeout))
        if state["error"]:
            raise state["error"]
        return state["response"]

    monkeypatch.setattr(downloader.requests, "get", get)
    state["calls"] = calls
    return state


class TestDownloadImage:

    def test_http_rejected_without_request(self, fake_get, tmp_path):
        """Test insecure URLs fail before any network call."""
        with pytest.raises(ImageFetchError, match="insecure"):
            download_image("http://example/img.tar", tmp_path / "image", 10)

        assert fake_get["calls"] == []
        assert not (tmp_path / "image").exists()

    @pytest.mark.parametrize("url", ["ftp://example/img.tar", "/tmp/img.tar", "https://"])
    def test_unsupported_url(self, fake_get, tmp_path, url):
        with pytest.raises(ImageFetchError, match="Unsupported image URL"):
            download_image(url, tmp_path / "image", 10)

        assert fake_get["calls"] == []

    def test_download_writes_body(self, fake_get, tmp_path):
        target = tmp_path / "image"

        download_image("https://example/img.tar", target, 10)

        assert target.read_bytes() == b"abcdef"
        assert fake_get["calls"] == [("https://example/img.tar", True, 10)]
        assert fake_get["response"].closed

    def test_unexpected_status(self, fake_get, tmp_path):
        fake_get["response"] = FakeResponse(status_code=404)

        with pytest.raises(ImageFetchError, match="unexpected HTTP code 404"):
            download_image("https://example/img.tar", tmp_path / "image", 10)

    def test_timeout_wrapped(self, fake_get, tmp_path):
        fake_get["error"] = requests.exceptions.ConnectTimeout("slow")

        with pytest.raises(ImageFetchError, match="timed out") as exc_info:
            download_image("https://example/img.tar", tmp_path / "image", 10)

        assert isinstance(exc_info.value.__cause__, requests.exceptions.Timeout)

    def test_connection_error_wrapped(self, fake_get, tmp_path):
        fake_get["error"] = requests.exceptions.ConnectionError("refused")

        with pytest.raises(ImageFetchError, match="Failed to download"):
            download_image("https://example/img.tar", tmp_path / "image", 10)

    def test_missing_target_directory(self, fake_get, tmp_path):
        with pytest.raises(ImageFetchError, match="Failed to create image file"):
            download_image("https://example/img.tar", tmp_path / "nope" / "image", 10)

    def test_downloader_uses_configured_timeout(self, fake_get, tmp_path):
        ImageDownloader(timeout=42)("https://example/img.tar", tmp_path / "image")

        assert fake_get["calls"][0][2] == 42

    def test_stalled_chunk_hits_overall_deadline(self, fake_get, tmp_path):
        """Test a response trickling inside one chunk is cut off."""
        fake_get["response"] = StalledResponse()

        started = time.monotonic()
        with pytest.raises(ImageFetchError, match="timed out after 0.1s"):
            download_image("https://example/img.tar", tmp_path / "image", 0.1)

        assert time.monotonic() - started < 2
        assert fake_get["response"].closed

    def test_read_error_after_deadline_reported_as_timeout(self, fake_get, tmp_path):
        fake_get["response"] = StalledResponse(
            error_on_close=requests.exceptions.ConnectionError("closed")
        )

        with pytest.raises(ImageFetchError, match="timed out") as exc_info:
            download_image("https://example/img.tar", tmp_path / "image", 0.1)

        assert isinstance(exc_info.value.__cause__, requests.exceptions.ConnectionError)
