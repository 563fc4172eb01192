"""Error hierarchy for the imagedrop pipeline.

Every public error class inherits from ImageDropError. Each carries a
machine-readable ``code`` (from :class:`ErrorCode`), a coarse ``kind``
(from :class:`ErrorKind`) used by the presentation layer to pick its
guidance text, a human-readable ``message``, an optional structured
``context`` dict, and an optional ``cause`` (chained exception).

Codes and kinds are :class:`str` enums so that they serialise naturally
to JSON and can be matched with simple ``==`` comparisons.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error the pipeline can raise."""

    INPUT_EMPTY = "INPUT_EMPTY"
    INVALID_URL = "INVALID_URL"
    INVALID_FILE_TYPE = "INVALID_FILE_TYPE"
    FILE_READ_ERROR = "FILE_READ_ERROR"
    DECODE_FAILED = "DECODE_FAILED"
    UPLOAD_FAILED = "UPLOAD_FAILED"
    INSERTION_FAILED = "INSERTION_FAILED"


class ErrorKind(str, Enum):
    """The five failure categories surfaced to the user."""

    INPUT_EMPTY = "input_empty"
    INPUT_INVALID = "input_invalid"
    DECODE_FAILED = "decode_failed"
    UPLOAD_FAILED = "upload_failed"
    INSERTION_FAILED = "insertion_failed"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class ImageDropError(Exception):
    """Base exception for all imagedrop errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` identifying the error.
    message:
        A human-readable description of what went wrong.  This is the
        text shown in the error slot.
    context:
        Arbitrary structured data providing extra diagnostic detail.
        Keys are documented per subclass.
    cause:
        The underlying exception, if this error wraps another.
    """

    kind: ErrorKind = ErrorKind.INPUT_INVALID

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# Input errors
# ---------------------------------------------------------------------------

class InputEmptyError(ImageDropError):
    """Nothing was supplied: a blank URL or a zero-byte file.

    Context keys: ``source``.
    """

    kind = ErrorKind.INPUT_EMPTY

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.INPUT_EMPTY,
            message=message,
            context=context,
            cause=cause,
        )


class InputInvalidError(ImageDropError):
    """Base class for input that was supplied but cannot be used."""

    kind = ErrorKind.INPUT_INVALID


class InvalidUrlError(InputInvalidError):
    """The supplied string is not an absolute ``http(s)`` or ``data:`` URI.

    Context keys: ``url``, ``reason``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.INVALID_URL,
            message=message,
            context=context,
            cause=cause,
        )


class InvalidFileTypeError(InputInvalidError):
    """The selected file is neither declared as nor sniffed as an image.

    Context keys: ``name``, ``declared_type``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.INVALID_FILE_TYPE,
            message=message,
            context=context,
            cause=cause,
        )


class FileReadError(InputInvalidError):
    """The selected file could not be read from disk.

    Context keys: ``name``, ``path``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.FILE_READ_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Decode errors
# ---------------------------------------------------------------------------

class DecodeFailedError(ImageDropError):
    """The image header could not be decoded into pixel dimensions.

    Context keys: ``src``, ``reason``.
    """

    kind = ErrorKind.DECODE_FAILED

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.DECODE_FAILED,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Collaborator errors
# ---------------------------------------------------------------------------

class UploadFailedError(ImageDropError):
    """The asset-upload collaborator rejected the image or failed to
    confirm durable storage.

    Context keys: ``stage`` (``"upload"`` or ``"wait_until_uploaded"``).
    """

    kind = ErrorKind.UPLOAD_FAILED

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.UPLOAD_FAILED,
            message=message,
            context=context,
            cause=cause,
        )


class InsertionFailedError(ImageDropError):
    """The document-insertion collaborator rejected the image element.

    Context keys: ``ref``.
    """

    kind = ErrorKind.INSERTION_FAILED

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.INSERTION_FAILED,
            message=message,
            context=context,
            cause=cause,
        )
