from __future__ import annotations

import logging
import os
import shutil
import time
from pathlib import Path
from typing import Optional

from .engine import ImageCodec, PillowCodec, build_encode_plan
from .errors import ERROR_MESSAGES, CodecError, ErrorKind, InPlaceReplaceError, classify_error
from .paths import default_output_path
from .results import CompressionOutcome, Compressed, Copied, Failed
from .settings import CompressionOptions


logger = logging.getLogger(__name__)


def compress_file(
    input_path: Path,
    output_path: Optional[Path],
    options: CompressionOptions,
    codec: Optional[ImageCodec] = None,
) -> CompressionOutcome:
    """
    Compress exactly one file.

    Returns Compressed when the encoded bytes are strictly smaller, Copied
    when they are not, and Failed for any error while handling the file.
    In place (output == input) a result that isn't smaller leaves the file
    untouched.
    """
    input_path = Path(input_path)
    codec = codec or PillowCodec()

    try:
        return _compress(input_path, output_path, options, codec)
    except (OSError, CodecError) as exc:
        kind = classify_error(exc)
        if isinstance(exc, InPlaceReplaceError):
            reason = f"{exc} (new content kept at {exc.temp_path})"
        elif isinstance(exc, CodecError):
            reason = f"{ERROR_MESSAGES[kind]}: {exc}"
        else:
            reason = ERROR_MESSAGES[kind]
        logger.debug("Failed %s: %r", input_path, exc)
        return Failed(
            input=input_path,
            error_kind=kind,
            message=f"Failed to compress {input_path.name}: {reason}",
            detail=str(exc),
        )
    except Exception as exc:
        # Anything unclassified still only fails this one file.
        logger.debug("Unexpected error on %s", input_path, exc_info=True)
        return Failed(
            input=input_path,
            error_kind=ErrorKind.IO_ERROR,
            message=f"Failed to compress {input_path.name}: {exc.__class__.__name__}: {exc}",
            detail=repr(exc),
        )


def _compress(
    input_path: Path,
    output_path: Optional[Path],
    options: CompressionOptions,
    codec: ImageCodec,
) -> CompressionOutcome:
    if input_path.is_dir():
        raise IsADirectoryError(f"Is a directory: '{input_path}'")

    # Raises FileNotFoundError / PermissionError for unreadable inputs.
    data = input_path.read_bytes()
    original_bytes = len(data)

    output_path = Path(output_path) if output_path is not None else default_output_path(input_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    info = codec.inspect(data)
    plan = build_encode_plan(info, output_path, options)
    logger.debug("%s: %dx%d %s -> %s %s", input_path.name, info.width, info.height, info.format, plan.format, plan.params)

    encoded = codec.encode(data, plan)
    compressed_bytes = len(encoded)
    saved = original_bytes - compressed_bytes

    in_place = _same_path(input_path, output_path)

    if saved > 0:
        if in_place:
            replace_in_place(input_path, encoded)
        else:
            output_path.write_bytes(encoded)

        return Compressed(
            input=input_path,
            output=output_path,
            original_bytes=original_bytes,
            compressed_bytes=compressed_bytes,
        )

    # Not smaller: keep the original bytes instead.
    logger.debug("%s: %d -> %d bytes, keeping original", input_path.name, original_bytes, compressed_bytes)
    if not in_place:
        shutil.copyfile(input_path, output_path)

    return Copied(input=input_path, output=output_path, original_bytes=original_bytes)


def replace_in_place(path: Path, data: bytes) -> None:
    """
    Swap `path` for `data` via a sibling temp file.

    Order is write temp -> delete original -> rename temp, since some
    platforms refuse to rename over an existing (possibly open) file.

    - temp write fails:       temp removed, original untouched, error raised
    - deleting original fails: temp removed, original untouched, error raised
    - rename fails:           original is already gone; temp is kept and
                              InPlaceReplaceError names it for recovery
    """
    path = Path(path)
    tmp_path = path.with_name(f"{path.name}.tmp{time.time_ns()}")

    try:
        tmp_path.write_bytes(data)
        path.unlink()
    except OSError:
        _remove_quietly(tmp_path)
        raise

    try:
        os.replace(tmp_path, path)
    except OSError as exc:
        logger.error(
            "Could not rename %s to %s after deleting the original; "
            "the compressed image is at %s and must be moved back by hand",
            tmp_path, path, tmp_path,
        )
        raise InPlaceReplaceError(f"Could not replace {path.name}: {exc}", tmp_path) from exc


def _remove_quietly(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Could not remove temp file %s: %s", path, exc)


def _same_path(a: Path, b: Path) -> bool:
    try:
        return a.resolve() == b.resolve()
    except OSError:
        return os.path.abspath(a) == os.path.abspath(b)
