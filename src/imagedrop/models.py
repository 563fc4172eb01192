"""Public data models for imagedrop.

This module contains every source type, enum, descriptor, and status
dataclass referenced by the public API surface.  All types are plain
dataclasses with no behaviour beyond construction-time validation and a
few mapping helpers.
"""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Union

from imagedrop.errors import ErrorKind

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class MimeType(str, Enum):
    """The two raster types the pipeline produces."""

    JPEG = "image/jpeg"
    PNG = "image/png"

    @classmethod
    def from_declared(cls, declared: str | None) -> MimeType | None:
        """Map a declared MIME string onto the enum, or return ``None``.

        Parameters such as ``; charset=binary`` are ignored and the
        comparison is case-insensitive.  ``image/jpg`` is accepted as a
        common misspelling of ``image/jpeg``.
        """
        if not declared:
            return None
        token = declared.split(";", 1)[0].strip().lower()
        if token == "image/png":
            return cls.PNG
        if token in ("image/jpeg", "image/jpg"):
            return cls.JPEG
        return None


class PipelineState(str, Enum):
    """Lifecycle states of a single upload attempt."""

    IDLE = "idle"
    """No attempt in flight; initial state."""

    VALIDATING = "validating"
    """Sniffing, loading, and probing the image."""

    UPLOADING = "uploading"
    """The descriptor has been handed to the upload collaborator."""

    INSERTING = "inserting"
    """The asset is being inserted and its durable storage awaited."""

    SUCCEEDED = "succeeded"
    """Upload, insertion, and storage confirmation all succeeded."""

    FAILED = "failed"
    """The attempt stopped with a :class:`FailureReason`."""


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FileSource:
    """A user-selected local file.

    Exactly one of *data* or *path* must be given.

    Attributes
    ----------
    name:
        The file name as reported by the picker.  Used as alt text.
    declared_type:
        The MIME type reported by the OS or picker.  Untrusted; only
        consulted when the leading bytes match no known signature.
    data:
        The raw file bytes, when already in memory.
    path:
        A filesystem path to read the bytes from.
    """

    name: str
    declared_type: str | None = None
    data: bytes | None = None
    path: Path | None = None

    def __post_init__(self) -> None:
        if (self.data is None) == (self.path is None):
            raise ValueError("FileSource requires exactly one of 'data' or 'path'")
        if self.path is not None and not isinstance(self.path, Path):
            object.__setattr__(self, "path", Path(self.path))

    @classmethod
    def from_path(cls, path: str | Path, declared_type: str | None = None) -> FileSource:
        """Build a source for *path*, guessing the declared type from its
        extension when none is given."""
        path = Path(path)
        if declared_type is None:
            declared_type, _ = mimetypes.guess_type(path.name)
        return cls(name=path.name, declared_type=declared_type, path=path)


@dataclass(frozen=True)
class UrlSource:
    """A user-typed image URL, unvalidated."""

    url: str


ImageSource = Union[FileSource, UrlSource]


# ---------------------------------------------------------------------------
# Pipeline data
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LoadedImage:
    """An image source normalised into an addressable representation.

    Attributes
    ----------
    payload:
        A URI for the image: a base64 ``data:`` URI for local files, or
        the validated absolute URI for URL sources.
    data:
        The raw image bytes when they are held locally, else ``None``.
    """

    payload: str
    data: bytes | None = None


@dataclass(frozen=True)
class ImageDescriptor:
    """A validated, dimensioned, correctly-typed image ready for upload.

    Width and height are measured from decoded content and must be
    strictly positive.
    """

    payload: str
    mime_type: MimeType
    width: int
    height: int

    def __post_init__(self) -> None:
        if not isinstance(self.mime_type, MimeType):
            raise ValueError(f"mime_type must be a MimeType, got {self.mime_type!r}")
        for dim in ("width", "height"):
            value = getattr(self, dim)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"{dim} must be a positive integer, got {value!r}")


@dataclass(frozen=True)
class UploadResult:
    """Outcome of a successful attempt.

    Attributes
    ----------
    asset_handle:
        The handle returned by the upload collaborator.
    insertion_outcome:
        Whatever the insertion collaborator returned.
    descriptor:
        The descriptor that was uploaded.
    """

    asset_handle: Any
    insertion_outcome: Any
    descriptor: ImageDescriptor


@dataclass(frozen=True)
class FailureReason:
    """A classified, human-readable failure."""

    kind: ErrorKind
    code: str
    message: str


@dataclass(frozen=True)
class StatusSnapshot:
    """The orchestrator's output slots at one point in time.

    Attributes
    ----------
    state:
        Current :class:`PipelineState`.
    busy:
        ``True`` while an attempt is validating, uploading, or inserting.
    error:
        The failure of the latest attempt, if any.
    success:
        ``True`` once the latest attempt succeeded.
    input_value:
        The URL text the user has typed.  Cleared after a success.
    attempt:
        Sequence number of the latest attempt (``0`` before any).
    """

    state: PipelineState
    busy: bool
    error: FailureReason | None
    success: bool
    input_value: str
    attempt: int


@dataclass(frozen=True)
class AttemptOutcome:
    """What a ``submit*`` call returns.

    A superseded attempt carries ``superseded=True``; its *state*,
    *result* and *error* describe where it stopped and were never
    published.
    """

    attempt: int
    state: PipelineState
    result: UploadResult | None = None
    error: FailureReason | None = None
    superseded: bool = False
