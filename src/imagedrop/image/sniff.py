"""Image format sniffing.

Determines whether an image is PNG or JPEG from the strongest evidence
available, without trusting caller-supplied metadata:

* local bytes -- leading signature, then the declared type, then JPEG;
* ``data:`` URIs -- the MIME token embedded in the prefix;
* remote URLs -- the server's ``Content-Type`` from a ``HEAD`` request,
  falling back to the path extension when the probe yields nothing.

Every route ends in a :class:`MimeType`; unrecognised input defaults to
JPEG.
"""

from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import Any
from urllib.parse import urlparse

import httpx

from imagedrop.models import MimeType
from imagedrop.observability import NoopMetricsHook, get_logger
from imagedrop.utils import describe_src

log = get_logger("imagedrop.sniff")

# Leading-byte signatures of the two supported formats.
_MAGIC_BYTES: list[tuple[bytes, MimeType]] = [
    (b"\x89PNG", MimeType.PNG),
    (b"\xff\xd8\xff", MimeType.JPEG),
]

# data:[<mediatype>][;params][;base64],<data>
_DATA_URI_MIME_RE = re.compile(r"^data:(?P<mime>[^;,]*)", re.IGNORECASE)


def match_signature(data: bytes) -> MimeType | None:
    """Return the type whose signature *data* starts with, if any."""
    for magic, mime in _MAGIC_BYTES:
        if data[:len(magic)] == magic:
            return mime
    return None


def sniff_bytes(data: bytes, declared_type: str | None = None) -> MimeType:
    """Classify local image bytes.

    Parameters
    ----------
    data:
        The file contents, or at least its first 8 bytes.
    declared_type:
        The MIME type reported by the OS or file picker.  Consulted only
        when *data* matches neither signature.

    Returns
    -------
    MimeType
        PNG or JPEG.  JPEG when nothing else applies.
    """
    sniffed = match_signature(data)
    if sniffed is not None:
        return sniffed
    declared = MimeType.from_declared(declared_type)
    if declared is not None:
        return declared
    return MimeType.JPEG


def mime_from_data_uri(uri: str) -> MimeType:
    """Read the MIME token from a ``data:`` URI prefix."""
    match = _DATA_URI_MIME_RE.match(uri)
    if match is None:
        return MimeType.JPEG
    return MimeType.from_declared(match.group("mime")) or MimeType.JPEG


def mime_from_extension(url: str) -> MimeType:
    """Infer the type from the URL path extension.

    The query string and fragment are ignored, so
    ``https://x.test/a.png?x=1`` is PNG.
    """
    try:
        path = urlparse(url).path
    except ValueError:
        return MimeType.JPEG
    if PurePosixPath(path).suffix.lower() == ".png":
        return MimeType.PNG
    return MimeType.JPEG


async def sniff_remote(
    url: str,
    client: httpx.AsyncClient,
    *,
    timeout: float | None = None,
    metrics: Any | None = None,
) -> MimeType:
    """Classify a remote image.

    ``data:`` URIs are classified from their prefix without any network
    call.  For ``http(s)`` URLs a ``HEAD`` request reads the server's
    ``Content-Type``.  If the request fails, the status is not 2xx, or
    the header is missing or names neither type, the URL extension
    decides instead.  Probe failures are never raised.

    Parameters
    ----------
    url:
        A URL already accepted by :func:`imagedrop.image.load.validate_url`.
    client:
        The HTTP client to probe with.
    timeout:
        Seconds to wait for the ``HEAD`` response.  ``None`` waits for
        the transport's own failure signal.
    metrics:
        Optional :class:`~imagedrop.observability.MetricsHook`.

    Returns
    -------
    MimeType
    """
    if url[:5].lower() == "data:":
        return mime_from_data_uri(url)

    metrics = metrics if metrics is not None else NoopMetricsHook()

    try:
        response = await client.head(
            url,
            follow_redirects=True,
            timeout=httpx.Timeout(timeout),
        )
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        return _fallback(url, "network_error", metrics, error=str(exc))

    if not response.is_success:
        return _fallback(url, "bad_status", metrics, status_code=response.status_code)

    content_type = response.headers.get("content-type")
    declared = MimeType.from_declared(content_type)
    if declared is None:
        return _fallback(url, "no_content_type", metrics, content_type=content_type)

    log.debug(
        "MIME type from Content-Type",
        extra={
            "extra_fields": {
                "op": "sniff_remote",
                "url": describe_src(url),
                "mime_type": declared.value,
            }
        },
    )
    return declared


def _fallback(url: str, reason: str, metrics: Any, **fields: Any) -> MimeType:
    mime = mime_from_extension(url)
    metrics.increment(
        "imagedrop.mime_probe_fallback_total",
        tags={"reason": reason},
    )
    log.debug(
        "MIME probe fell back to extension",
        extra={
            "extra_fields": {
                "op": "sniff_remote",
                "url": describe_src(url),
                "reason": reason,
                "mime_type": mime.value,
                **fields,
            }
        },
    )
    return mime
