"""Dimension probing.

Reads just enough of an image to learn its pixel width and height,
using Pillow's decoders rather than hand-written header parsers.
``Image.open`` parses the header only, so local bytes are measured
without decoding pixels.  Remote images are streamed; the received
prefix is re-opened each time it doubles in size, and the download
stops as soon as the header parses.  All Pillow work runs in the
default executor.

Only PNG and JPEG are accepted.  A dimension is never guessed: anything
short of a decoded, positive width and height raises
:class:`DecodeFailedError`.
"""

from __future__ import annotations

import asyncio
from io import BytesIO

import httpx
from PIL import Image

from imagedrop.errors import DecodeFailedError
from imagedrop.image.load import decode_data_uri
from imagedrop.models import LoadedImage
from imagedrop.observability import get_logger
from imagedrop.utils import describe_src

log = get_logger("imagedrop.probe")

# Pillow format names the pipeline can upload.
SUPPORTED_FORMATS = frozenset({"PNG", "JPEG"})

# First remote parse happens once this many bytes have arrived.
_FIRST_PARSE_BYTES = 16 * 1024


def measure_bytes(data: bytes) -> tuple[int, int]:
    """Return ``(width, height)`` of the image held in *data*.

    Raises
    ------
    DecodeFailedError
        If Pillow cannot identify the image, the image is neither PNG
        nor JPEG, or the size is non-positive.
    """
    src = f"<bytes:{len(data)}>"
    try:
        with Image.open(BytesIO(data)) as img:
            fmt, (width, height) = img.format, img.size
    except Exception as exc:
        raise DecodeFailedError(
            message="Cannot decode image",
            context={"src": src, "reason": type(exc).__name__},
            cause=exc,
        ) from exc
    return _checked(fmt, width, height, src)


async def probe_dimensions(
    loaded: LoadedImage,
    client: httpx.AsyncClient,
    *,
    read_limit: int,
    timeout: float | None = None,
) -> tuple[int, int]:
    """Measure a loaded image, whichever form it is in.

    Parameters
    ----------
    loaded:
        Output of the content loader.
    client:
        HTTP client used when the payload is a remote URL.
    read_limit:
        Maximum bytes to download while waiting for a parsable header.
    timeout:
        Timeout for the remote ``GET``; ``None`` means no timeout.

    Returns
    -------
    tuple[int, int]
        ``(width, height)`` in pixels.

    Raises
    ------
    DecodeFailedError
        If the image cannot be fetched or decoded, or is not PNG/JPEG.
    """
    data = loaded.data
    if data is None and loaded.payload[:5].lower() == "data:":
        data = decode_data_uri(loaded.payload)

    if data is not None:
        loop = asyncio.get_running_loop()
        width, height = await loop.run_in_executor(None, measure_bytes, data)
    else:
        width, height = await _probe_remote(
            loaded.payload, client, read_limit=read_limit, timeout=timeout,
        )

    log.debug(
        "Image dimensions measured",
        extra={
            "extra_fields": {
                "op": "probe_dimensions",
                "src": describe_src(loaded.payload),
                "width": width,
                "height": height,
            }
        },
    )
    return width, height


async def _probe_remote(
    url: str,
    client: httpx.AsyncClient,
    *,
    read_limit: int,
    timeout: float | None,
) -> tuple[int, int]:
    """Stream *url* until its received prefix yields a header."""
    loop = asyncio.get_running_loop()
    buffer = bytearray()
    parsed_len = 0
    next_parse = min(_FIRST_PARSE_BYTES, read_limit)
    try:
        async with client.stream(
            "GET",
            url,
            follow_redirects=True,
            timeout=httpx.Timeout(timeout),
        ) as response:
            if not response.is_success:
                raise DecodeFailedError(
                    message=f"Cannot decode image: server returned HTTP {response.status_code}",
                    context={
                        "src": describe_src(url),
                        "reason": "bad_status",
                        "status_code": response.status_code,
                    },
                )
            async for chunk in response.aiter_bytes():
                buffer += chunk
                if len(buffer) < next_parse:
                    continue
                parsed_len = len(buffer)
                header = await loop.run_in_executor(None, _read_header, bytes(buffer))
                if header is not None:
                    return _checked(*header, url)
                if parsed_len >= read_limit:
                    raise DecodeFailedError(
                        message="Cannot decode image: no image header found",
                        context={
                            "src": describe_src(url),
                            "reason": "read_limit_exceeded",
                            "bytes_read": parsed_len,
                        },
                    )
                next_parse = min(parsed_len * 2, read_limit)
    except DecodeFailedError:
        raise
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise DecodeFailedError(
            message=f"Cannot decode image: {exc}",
            context={"src": describe_src(url), "reason": "network_error"},
            cause=exc,
        ) from exc
    except Exception as exc:
        # Pillow signals unparsable headers with a range of exception types.
        raise DecodeFailedError(
            message="Cannot decode image",
            context={"src": describe_src(url), "reason": type(exc).__name__},
            cause=exc,
        ) from exc

    # Stream ended below the next threshold.
    if len(buffer) > parsed_len:
        header = await loop.run_in_executor(None, _read_header, bytes(buffer))
        if header is not None:
            return _checked(*header, url)

    raise DecodeFailedError(
        message="Cannot decode image: no image header found",
        context={"src": describe_src(url), "reason": "truncated", "bytes_read": len(buffer)},
    )


def _read_header(data: bytes) -> tuple[str | None, int, int] | None:
    """Return ``(format, width, height)`` if *data* holds a complete
    header, else ``None``."""
    try:
        with Image.open(BytesIO(data)) as img:
            return img.format, img.size[0], img.size[1]
    except (OSError, EOFError, SyntaxError):
        # Unidentified so far; more bytes may complete the header.
        return None


def _checked(fmt: str | None, width: int, height: int, src: str) -> tuple[int, int]:
    if fmt not in SUPPORTED_FORMATS:
        raise DecodeFailedError(
            message=f"Cannot decode image: unsupported format {fmt or 'unknown'}",
            context={"src": describe_src(src), "reason": "unsupported_format", "format": fmt},
        )
    if width <= 0 or height <= 0:
        raise DecodeFailedError(
            message="Cannot decode image: non-positive dimensions",
            context={"src": describe_src(src), "width": width, "height": height},
        )
    return int(width), int(height)
