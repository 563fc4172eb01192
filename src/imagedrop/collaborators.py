"""Interfaces of the external services the orchestrator drives.

The host application supplies concrete objects satisfying these
protocols; imagedrop never talks to the upload or document services
directly.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class AssetHandle(Protocol):
    """A handle to an asset accepted by the upload service."""

    ref: str
    """Reference id used to insert the asset into a document."""

    async def wait_until_uploaded(self) -> None:
        """Resolve once the asset is durably stored; raise on failure."""
        ...


@runtime_checkable
class AssetUploader(Protocol):
    """The remote asset-upload service."""

    async def upload(self, request: dict[str, Any]) -> AssetHandle:
        """Accept an upload request (see
        :func:`imagedrop.image.attach.build_upload_request`) and return a
        handle.  Raise to reject it."""
        ...


@runtime_checkable
class DocumentInserter(Protocol):
    """The document-insertion service."""

    async def insert(self, element: dict[str, Any]) -> Any:
        """Insert an image element (see
        :func:`imagedrop.image.attach.build_image_element`).  Raise to
        reject it; the return value is kept as the insertion outcome."""
        ...
