# edge_deployer/images/downloader.py
"""Application image download over HTTPS."""

import logging
import threading
import time
from pathlib import Path
from typing import Union
from urllib.parse import urlparse

import requests

from edge_deployer.core.errors import ImageFetchError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def check_image_url(url: str) -> None:
    """
    Reject anything but an HTTPS URL.

    Raises:
        ImageFetchError: If the scheme is insecure or unknown
    """
    parsed = urlparse(url)

    if parsed.scheme == "http":
        raise ImageFetchError(
            "HTTP image path unsupported as insecure, please use HTTPS"
        )
    if parsed.scheme != "https" or not parsed.netloc:
        raise ImageFetchError(f"Unsupported image URL: {url}")


class _Deadline:
    """Closes the response once the overall download time is spent."""

    def __init__(self, seconds: float, response):
        self.expired = threading.Event()
        self._response = response
        self._timer = threading.Timer(max(seconds, 0), self._expire)
        self._timer.daemon = True

    def _expire(self) -> None:
        self.expired.set()
        # Unblocks a read stuck inside a chunk
        self._response.close()

    def __enter__(self):
        self._timer.start()
        return self

    def __exit__(self, *exc):
        self._timer.cancel()
        return False


def _write_body(response, target: Union[str, Path], deadline: _Deadline) -> int:
    written = 0
    with open(target, "wb") as output:
        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
            if deadline.expired.is_set():
                break
            if chunk:
                output.write(chunk)
                written += len(chunk)
    return written


def download_image(url: str, target: Union[str, Path], timeout: float) -> None:
    """
    Download an image into ``target``.

    Args:
        url: HTTPS URL of the image
        target: Local file to write, overwritten if present
        timeout: Overall download deadline in seconds, also the
            connect/read timeout of each socket operation

    Raises:
        ImageFetchError: On any failure. A partially written target may be
            left behind.
    """
    check_image_url(url)

    started = time.monotonic()
    timed_out = f"Download of {url} timed out after {timeout}s"

    try:
        with requests.get(url, stream=True, timeout=timeout) as response:
            if response.status_code != 200:
                raise ImageFetchError(
                    f"unexpected HTTP code {response.status_code} returned"
                )

            remaining = timeout - (time.monotonic() - started)
            with _Deadline(remaining, response) as deadline:
                try:
                    written = _write_body(response, target, deadline)
                except Exception as e:
                    if deadline.expired.is_set():
                        raise ImageFetchError(timed_out) from e
                    raise
            # A closed stream can end quietly with a truncated body
            if deadline.expired.is_set():
                raise ImageFetchError(timed_out)

    except requests.exceptions.Timeout as e:
        raise ImageFetchError(timed_out) from e
    except requests.exceptions.RequestException as e:
        raise ImageFetchError(f"Failed to download {url}: {e}") from e
    except OSError as e:
        raise ImageFetchError(f"Failed to create image file {target}: {e}") from e

    logger.info(f"Downloaded {url} to {target} ({written} bytes)")


class ImageDownloader:
    """Callable wrapper so the orchestrator can take a fake in tests."""

    def __init__(self, timeout: float):
        self.timeout = timeout

    def __call__(self, url: str, target: Union[str, Path]) -> None:
        download_image(url, target, self.timeout)
