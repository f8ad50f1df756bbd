from __future__ import annotations

import os
from pathlib import Path

from .settings import CompressionOptions


SUPPORTED_EXTS = {".jpg", ".jpeg", ".png", ".webp", ".gif", ".avif"}

# Directory created under the input root when no --output is given.
DEFAULT_OUTPUT_DIRNAME = "compressed"


def _relative_dir(input_path: Path, base_dir: Path) -> Path:
    # os.path.relpath works lexically, so nothing has to exist on disk.
    rel = Path(os.path.relpath(str(input_path), str(base_dir)))
    return rel.parent


def plan_output_path(
    input_path: Path,
    base_dir: Path,
    options: CompressionOptions,
    single_file: bool = False,
) -> Path:
    """
    Decide where the compressed copy of `input_path` goes.

    - output set, flat:            <output>/<name><ext>
    - output set, keep_structure:  <output>/<relative dir>/<name><ext>
    - no output:                   <base_dir>/compressed/<relative dir>/<name><ext>

    For a single input, an output with an image extension is taken as the
    exact destination file.

    Pure: never touches the filesystem.
    """
    input_path = Path(input_path)
    base_dir = Path(base_dir)

    if single_file and options.output is not None and options.output.suffix.lower() in SUPPORTED_EXTS:
        return options.output

    rel_dir = _relative_dir(input_path, base_dir)

    if options.output is not None:
        out_dir = options.output / rel_dir if options.keep_structure else options.output
    else:
        out_dir = base_dir / DEFAULT_OUTPUT_DIRNAME / rel_dir

    ext = f".{options.format.lower()}" if options.format else input_path.suffix
    return out_dir / f"{input_path.stem}{ext}"


def default_output_path(input_path: Path) -> Path:
    """photo.jpg -> photo_compressed.jpg, next to the input."""
    input_path = Path(input_path)
    return input_path.with_name(f"{input_path.stem}_compressed{input_path.suffix}")
