from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .batch import iter_images
from .engine import ImageCodec, PillowCodec
from .errors import CodecError, InputNotFoundError

logger = logging.getLogger(__name__)

# Rough guess used by `stats` for what compression would save.
ESTIMATED_SAVINGS_RATIO = 0.3


@dataclass(frozen=True)
class ImageStat:
    path: Path
    size_bytes: int
    width: Optional[int]
    height: Optional[int]
    format: str

    @property
    def dimensions(self) -> str:
        if self.width is None or self.height is None:
            return "-"
        return f"{self.width}x{self.height}"


@dataclass(frozen=True)
class Analysis:
    files: List[ImageStat]

    @property
    def total_files(self) -> int:
        return len(self.files)

    @property
    def total_bytes(self) -> int:
        return sum(f.size_bytes for f in self.files)

    @property
    def average_bytes(self) -> int:
        if not self.files:
            return 0
        return round(self.total_bytes / len(self.files))

    @property
    def estimated_savings(self) -> float:
        return self.total_bytes * ESTIMATED_SAVINGS_RATIO


def analyze_images(path: Path, codec: Optional[ImageCodec] = None) -> Analysis:
    """Read-only: sizes, dimensions and formats of the images under `path`."""
    path = Path(path)
    codec = codec or PillowCodec()

    if path.is_dir():
        files = list(iter_images(path))
    elif path.is_file():
        files = [path]
    else:
        raise InputNotFoundError(f"Path not found: {path}")

    stats: List[ImageStat] = []
    for f in files:
        try:
            data = f.read_bytes()
        except OSError as exc:
            logger.warning("Cannot read %s: %s", f, exc)
            stats.append(ImageStat(path=f, size_bytes=0, width=None, height=None, format="unknown"))
            continue
        try:
            info = codec.inspect(data)
        except CodecError:
            stats.append(ImageStat(path=f, size_bytes=len(data), width=None, height=None, format="unknown"))
            continue
        stats.append(ImageStat(path=f, size_bytes=len(data), width=info.width, height=info.height, format=info.format))

    return Analysis(files=stats)
