from __future__ import annotations

import enum
from pathlib import Path


class ErrorKind(str, enum.Enum):
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    IS_DIRECTORY = "is_directory"
    CODEC_ERROR = "codec_error"
    IO_ERROR = "io_error"
    INVALID_OPTION = "invalid_option"


# Short messages shown to the user for each kind.
ERROR_MESSAGES = {
    ErrorKind.NOT_FOUND: "File not found",
    ErrorKind.PERMISSION_DENIED: "Permission denied",
    ErrorKind.IS_DIRECTORY: "Path is a directory",
    ErrorKind.CODEC_ERROR: "Unsupported or corrupt image",
    ErrorKind.IO_ERROR: "I/O error",
    ErrorKind.INVALID_OPTION: "Invalid option",
}


class ImgCompressError(Exception):
    """Base class for errors raised by imgcompress."""


class InvalidOptionError(ImgCompressError, ValueError):
    """Raised when CompressionOptions are out of range or conflicting."""


class CodecError(ImgCompressError):
    """The image library could not decode or encode a file."""


class InputNotFoundError(ImgCompressError):
    """A path, pattern or list file resolved to nothing to process."""


class InPlaceReplaceError(OSError):
    """
    Renaming the temp file over the original failed *after* the original
    was deleted. The new content is still on disk at `temp_path`.
    """

    def __init__(self, message: str, temp_path: Path) -> None:
        super().__init__(message)
        self.temp_path = temp_path


def classify_error(exc: BaseException) -> ErrorKind:
    if isinstance(exc, CodecError):
        return ErrorKind.CODEC_ERROR
    if isinstance(exc, InvalidOptionError):
        return ErrorKind.INVALID_OPTION
    if isinstance(exc, FileNotFoundError):
        return ErrorKind.NOT_FOUND
    if isinstance(exc, PermissionError):
        return ErrorKind.PERMISSION_DENIED
    if isinstance(exc, IsADirectoryError):
        return ErrorKind.IS_DIRECTORY
    return ErrorKind.IO_ERROR
