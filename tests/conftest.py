"""Shared test fixtures for the imagedrop test suite."""

from __future__ import annotations

from io import BytesIO
from typing import Callable
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from PIL import Image

from imagedrop.config import ImageDropConfig


def _encode_image(width: int, height: int, fmt: str) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", (width, height), (200, 40, 40)).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def make_image() -> Callable[[int, int, str], bytes]:
    """Encode a solid-colour image of the given size and Pillow format."""
    return _encode_image


@pytest.fixture
def config() -> ImageDropConfig:
    """Default test configuration."""
    return ImageDropConfig()


@pytest.fixture
def png_bytes() -> bytes:
    """A valid 2x3 PNG."""
    return _encode_image(2, 3, "PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    """A valid 4x5 JPEG."""
    return _encode_image(4, 5, "JPEG")


@pytest.fixture
def mock_http() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Factory for an ``httpx.AsyncClient`` backed by a handler function.

    Every request the client sees is appended to ``client.requests``.
    """

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        seen: list[httpx.Request] = []

        def recording(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return handler(request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(recording))
        client.requests = seen  # type: ignore[attr-defined]
        return client

    return factory


def _make_handle(ref: str = "asset-1") -> MagicMock:
    handle = MagicMock()
    handle.ref = ref
    handle.wait_until_uploaded = AsyncMock(return_value=None)
    return handle


@pytest.fixture
def make_handle() -> Callable[..., MagicMock]:
    """Build an asset handle whose storage wait succeeds."""
    return _make_handle


@pytest.fixture
def handle() -> MagicMock:
    return _make_handle()


@pytest.fixture
def uploader(handle: MagicMock) -> MagicMock:
    """Upload collaborator returning :func:`handle`."""
    api = MagicMock()
    api.upload = AsyncMock(return_value=handle)
    return api


@pytest.fixture
def inserter() -> MagicMock:
    """Insertion collaborator that succeeds."""
    api = MagicMock()
    api.insert = AsyncMock(return_value={"inserted": True})
    return api
