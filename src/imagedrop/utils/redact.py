"""Shorten image sources before they reach logs or error context.

A base64 ``data:`` URI for a photo runs to megabytes, so sources are
never logged verbatim:

* :func:`describe_src` replaces a data URI with ``<data_uri:MIME:N_chars>``
  and passes other URIs through :func:`truncate_src`.
* :func:`truncate_src` cuts any string to a fixed length.
"""

from __future__ import annotations

import re

_DATA_URI_HEAD_RE = re.compile(r"^data:(?P<mime>[^;,]*)", re.IGNORECASE)


def truncate_src(src: str, max_len: int = 200) -> str:
    """Truncate a source string for inclusion in error context."""
    if len(src) <= max_len:
        return src
    return src[:max_len] + "..."


def describe_src(src: str) -> str:
    """Return a log-safe description of *src*."""
    match = _DATA_URI_HEAD_RE.match(src)
    if match:
        mime = match.group("mime") or "unknown"
        return f"<data_uri:{mime}:{len(src)}_chars>"
    return truncate_src(src)
