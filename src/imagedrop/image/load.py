"""Content loading: turn an :class:`ImageSource` into a :class:`LoadedImage`.

File sources become a self-contained base64 ``data:`` URI, usable both
as a preview and as the upload payload.  URL sources are validated as
absolute URIs before any network or decode work happens.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import re
from urllib.parse import unquote_to_bytes, urlparse

import httpx

from imagedrop.errors import (
    DecodeFailedError,
    FileReadError,
    InputEmptyError,
    InvalidUrlError,
)
from imagedrop.models import FileSource, LoadedImage, MimeType, UrlSource
from imagedrop.utils import describe_src, truncate_src

# Regex to parse data URIs: data:[<mediatype>][;params][;base64],<data>
_DATA_URI_RE = re.compile(
    r"^data:(?P<mime>[^;,]*)(?P<params>(?:;[^;,]*)*?)(?:;(?P<encoding>base64))?,(?P<data>.*)$",
    re.IGNORECASE | re.DOTALL,
)

_WEB_SCHEMES = ("http", "https")


def validate_url(raw: str) -> str:
    """Validate a user-typed URL and return it stripped of whitespace.

    Accepts absolute ``http``/``https`` URLs with a host, and ``data:``
    URIs.  No network access is performed.

    Raises
    ------
    InputEmptyError
        If *raw* is empty or whitespace.
    InvalidUrlError
        If *raw* is not an acceptable absolute URI.
    """
    url = (raw or "").strip()
    if not url:
        raise InputEmptyError(
            message="Please enter an image URL",
            context={"source": "url"},
        )

    try:
        parsed = urlparse(url)
    except ValueError as exc:
        raise InvalidUrlError(
            message="Please enter a valid URL",
            context={"url": truncate_src(url), "reason": "parse_error"},
            cause=exc,
        ) from exc

    scheme = parsed.scheme.lower()
    if scheme == "data":
        if _DATA_URI_RE.match(url) is None:
            raise InvalidUrlError(
                message="Please enter a valid URL",
                context={"url": describe_src(url), "reason": "malformed_data_uri"},
            )
        return url

    if scheme not in _WEB_SCHEMES:
        raise InvalidUrlError(
            message="Please enter a valid URL",
            context={"url": truncate_src(url), "reason": "unsupported_scheme"},
        )
    if not parsed.hostname or any(ch.isspace() for ch in url):
        raise InvalidUrlError(
            message="Please enter a valid URL",
            context={"url": truncate_src(url), "reason": "invalid_host"},
        )
    try:
        # urlparse defers port checks to attribute access.
        parsed.port
        httpx.URL(url)
    except (ValueError, httpx.InvalidURL) as exc:
        raise InvalidUrlError(
            message="Please enter a valid URL",
            context={"url": truncate_src(url), "reason": "invalid_authority"},
            cause=exc,
        ) from exc
    return url


def encode_data_uri(data: bytes, mime_type: MimeType) -> str:
    """Embed *data* in a base64 ``data:`` URI."""
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type.value};base64,{encoded}"


def decode_data_uri(uri: str) -> bytes:
    """Return the bytes embedded in a ``data:`` URI.

    Raises
    ------
    DecodeFailedError
        If the URI is malformed or its payload cannot be decoded.
    """
    match = _DATA_URI_RE.match(uri)
    if not match:
        raise DecodeFailedError(
            message="Invalid data URI format",
            context={"src": describe_src(uri), "reason": "regex_no_match"},
        )

    raw_data = match.group("data")
    if match.group("encoding"):
        try:
            return base64.b64decode(raw_data, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise DecodeFailedError(
                message="Failed to decode base64 data URI",
                context={"src": describe_src(uri), "reason": "base64_decode_error"},
                cause=exc,
            ) from exc
    return unquote_to_bytes(raw_data)


async def read_file(source: FileSource) -> bytes:
    """Return the bytes of *source*, reading from disk if necessary.

    Raises
    ------
    FileReadError
        If the file cannot be read.
    """
    if source.data is not None:
        return source.data

    loop = asyncio.get_running_loop()
    try:
        return await loop.run_in_executor(None, source.path.read_bytes)
    except OSError as exc:
        raise FileReadError(
            message=f"Could not read file {source.name!r}",
            context={"name": source.name, "path": str(source.path)},
            cause=exc,
        ) from exc


async def load_file(source: FileSource, mime_type: MimeType, data: bytes | None = None) -> LoadedImage:
    """Load a file source as a ``data:`` URI tagged with *mime_type*.

    *data* may be passed when the bytes were already read (for sniffing)
    to avoid a second read.
    """
    if data is None:
        data = await read_file(source)
    return LoadedImage(payload=encode_data_uri(data, mime_type), data=data)


def load_url(source: UrlSource) -> LoadedImage:
    """Load a URL source.  ``data:`` URIs carry their bytes inline."""
    url = validate_url(source.url)
    if url[:5].lower() == "data:":
        return LoadedImage(payload=url, data=decode_data_uri(url))
    return LoadedImage(payload=url)
