"""Read encoded image bytes from local paths, data URIs, and HTTP URLs."""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass
from pathlib import Path
from threading import Lock
from urllib.parse import unquote, unquote_to_bytes, urlparse

import requests
from requests import Session
from tenacity import (  # type: ignore[import-untyped]
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..errors import ImageTooLargeError, LoadError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
DEFAULT_MAX_BYTES = 50 * 1024 * 1024
_CHUNK_SIZE = 64 * 1024
_USER_AGENT = "image-integrity-index/0.1 (+https://pypi.org/project/image-integrity-index/)"

_session_lock = Lock()
_session: Session | None = None


@dataclass(frozen=True, slots=True)
class ImageSource:
    """Encoded image bytes plus the display name used in reports and errors."""

    name: str
    data: bytes
    mime: str | None = None


class RetryableHTTPStatusError(Exception):
    """Raised for HTTP status codes that should trigger a retry."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"Server returned status {status_code}")
        self.status_code = status_code


def _get_session() -> Session:
    """Return a shared requests session configured with default headers."""
    global _session
    if _session is None:
        with _session_lock:
            if _session is None:
                session = requests.Session()
                session.headers.update(
                    {
                        "User-Agent": _USER_AGENT,
                        "Accept": "image/*,*/*;q=0.8",
                    }
                )
                _session = session
    return _session


_retryer = Retrying(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=5),
    retry=retry_if_exception_type(
        (requests.Timeout, requests.ConnectionError, RetryableHTTPStatusError)
    ),
    before_sleep=before_sleep_log(logger, logging.DEBUG),
    reraise=True,
)


def is_url(location: str) -> bool:
    return urlparse(location).scheme in {"http", "https"}


def display_name(location: str) -> str:
    """Return the file name portion of a path or URL."""
    if location.startswith("data:"):
        return "inline-image"
    parsed = urlparse(location)
    if parsed.scheme in {"http", "https"}:
        filename = unquote(parsed.path.rsplit("/", 1)[-1])
        return filename or parsed.netloc or location
    return Path(location).name or location


def _download_once(url: str, timeout: float, max_bytes: int) -> tuple[bytes, str | None]:
    """Issue a single streamed GET and return the body and its content type."""
    session = _get_session()
    with session.get(url, timeout=timeout, stream=True, allow_redirects=True) as response:
        if 500 <= response.status_code < 600:
            raise RetryableHTTPStatusError(response.status_code)
        response.raise_for_status()

        declared = response.headers.get("Content-Length")
        if declared and declared.isdigit() and int(declared) > max_bytes:
            raise ImageTooLargeError(display_name(url), int(declared), max_bytes)

        chunks: list[bytes] = []
        received = 0
        for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
            received += len(chunk)
            if received > max_bytes:
                raise ImageTooLargeError(display_name(url), received, max_bytes)
            chunks.append(chunk)

        content_type = response.headers.get("Content-Type")
        mime = content_type.split(";", 1)[0].strip().lower() if content_type else None
        return b"".join(chunks), mime


def fetch_image_bytes(
    url: str, timeout: float = DEFAULT_TIMEOUT, max_bytes: int = DEFAULT_MAX_BYTES
) -> ImageSource:
    """Download *url*, retrying transient failures, and return its bytes.

    Server errors, timeouts, and connection errors are retried; any remaining
    failure is raised as ``LoadError``.
    """
    name = display_name(url)
    try:
        data, mime = _retryer(lambda: _download_once(url, timeout, max_bytes))
    except ImageTooLargeError:
        raise
    except RetryableHTTPStatusError as exc:
        logger.warning("Server error fetching %s: %s", url, exc)
        raise LoadError(name, str(exc)) from exc
    except requests.RequestException as exc:
        logger.warning("Request error fetching %s: %s", url, exc)
        raise LoadError(name, str(exc)) from exc
    logger.debug("Fetched %d bytes from %s", len(data), url)
    return ImageSource(name=name, data=data, mime=mime)


def decode_data_uri(uri: str) -> ImageSource:
    """Return the payload of a ``data:`` URI."""
    try:
        header, payload = uri.split(",", 1)
    except ValueError as exc:
        raise LoadError("inline-image", "malformed data URI") from exc

    mime = header[len("data:"):].split(";", 1)[0].strip().lower() or None
    if ";base64" in header:
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise LoadError("inline-image", "invalid base64 payload") from exc
    else:
        data = unquote_to_bytes(payload)
    return ImageSource(name="inline-image", data=data, mime=mime)


def read_local_file(path: Path, max_bytes: int = DEFAULT_MAX_BYTES) -> ImageSource:
    """Read *path* from disk, checking its size before loading it."""
    name = path.name or str(path)
    try:
        size = path.stat().st_size
        if size > max_bytes:
            raise ImageTooLargeError(name, size, max_bytes)
        data = path.read_bytes()
    except OSError as exc:
        raise LoadError(name, exc.strerror or str(exc)) from exc
    return ImageSource(name=name, data=data)


def read_image_source(
    location: str | Path,
    timeout: float = DEFAULT_TIMEOUT,
    max_bytes: int = DEFAULT_MAX_BYTES,
) -> ImageSource:
    """Return the bytes behind *location*: a path, an http(s) URL, or a data URI."""
    if isinstance(location, Path):
        return read_local_file(location, max_bytes=max_bytes)
    cleaned = location.strip()
    if cleaned.startswith("data:"):
        return decode_data_uri(cleaned)
    if is_url(cleaned):
        return fetch_image_bytes(cleaned, timeout=timeout, max_bytes=max_bytes)
    return read_local_file(Path(cleaned), max_bytes=max_bytes)
