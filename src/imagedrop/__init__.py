"""imagedrop: identify, validate, measure, and upload user-supplied images.

Public re-exports
-----------------

* **Orchestrator:** :class:`UploadOrchestrator`
* **Collaborator protocols:** :class:`AssetUploader`, :class:`AssetHandle`,
  :class:`DocumentInserter`
* **Configuration:** :class:`ImageDropConfig`
* **Errors:** Every :class:`ImageDropError` subclass, :class:`ErrorCode`,
  and :class:`ErrorKind`
* **Models:** Sources, descriptors, enums, and status dataclasses

Usage::

    from imagedrop import FileSource, UploadOrchestrator

    async with UploadOrchestrator(uploader, inserter) as orchestrator:
        outcome = await orchestrator.submit_file(FileSource.from_path("cat.png"))
        print(outcome.state, outcome.error)
"""

from __future__ import annotations

# ── Collaborators ────────────────────────────────────────────────────────
from imagedrop.collaborators import AssetHandle, AssetUploader, DocumentInserter

# ── Configuration ───────────────────────────────────────────────────────
from imagedrop.config import DEFAULT_ALT_TEXT, ImageDropConfig

# ── Errors ──────────────────────────────────────────────────────────────
from imagedrop.errors import (
    DecodeFailedError,
    ErrorCode,
    ErrorKind,
    FileReadError,
    ImageDropError,
    InputEmptyError,
    InputInvalidError,
    InsertionFailedError,
    InvalidFileTypeError,
    InvalidUrlError,
    UploadFailedError,
)

# ── Models ──────────────────────────────────────────────────────────────
from imagedrop.models import (
    AttemptOutcome,
    FailureReason,
    FileSource,
    ImageDescriptor,
    ImageSource,
    LoadedImage,
    MimeType,
    PipelineState,
    StatusSnapshot,
    UploadResult,
    UrlSource,
)
from imagedrop.orchestrator import UploadOrchestrator

__all__ = [
    "DEFAULT_ALT_TEXT",
    "AssetHandle",
    "AssetUploader",
    "AttemptOutcome",
    "DecodeFailedError",
    "DocumentInserter",
    "ErrorCode",
    "ErrorKind",
    "FailureReason",
    "FileReadError",
    "FileSource",
    "ImageDescriptor",
    "ImageDropConfig",
    "ImageDropError",
    "ImageSource",
    "InputEmptyError",
    "InputInvalidError",
    "InsertionFailedError",
    "InvalidFileTypeError",
    "InvalidUrlError",
    "LoadedImage",
    "MimeType",
    "PipelineState",
    "StatusSnapshot",
    "UploadFailedError",
    "UploadOrchestrator",
    "UploadResult",
    "UrlSource",
]

__version__ = "0.1.0"
