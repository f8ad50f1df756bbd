from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import InvalidOptionError


# Output formats accepted by --format. "jpg" and "jpeg" are the same encoder.
SUPPORTED_FORMATS = ("jpg", "jpeg", "png", "webp", "avif", "gif")

DEFAULT_QUALITY = 80


def normalize_format(fmt: Optional[str]) -> Optional[str]:
    """Lowercase a format name and fold "jpg" into "jpeg"."""
    if not fmt:
        return None
    fmt = fmt.lower().lstrip(".")
    return "jpeg" if fmt == "jpg" else fmt


@dataclass(frozen=True)
class CompressionOptions:
    """
    All user-configurable knobs for one batch run.

    Values are validated once, here, so the rest of the pipeline never has
    to re-check ranges. Per-format qualities left as None fall back to
    `quality`.
    """

    # ----- Quality -----
    quality: int = DEFAULT_QUALITY
    jpeg_quality: Optional[int] = None
    png_quality: Optional[int] = None
    webp_quality: Optional[int] = None

    # ----- Output -----
    format: Optional[str] = None  # None keeps the source format
    output: Optional[Path] = None  # directory, or a file for a single input
    keep_structure: bool = False
    replace: bool = False
    dry_run: bool = False

    # ----- Resize (bounding box, never enlarges) -----
    width: Optional[int] = None
    height: Optional[int] = None

    # ----- Encoder / metadata -----
    optimize: bool = True
    rotate: bool = True
    keep_metadata: bool = False

    # ----- Size filters (KB) -----
    min_size: Optional[float] = None
    max_size: Optional[float] = None

    verbose: bool = False

    def __post_init__(self) -> None:
        for name in ("quality", "jpeg_quality", "png_quality", "webp_quality"):
            value = getattr(self, name)
            if value is None and name != "quality":
                continue
            if not isinstance(value, int) or not 1 <= value <= 100:
                raise InvalidOptionError(f"{name} must be an integer between 1 and 100, got {value!r}")

        for name in ("width", "height"):
            value = getattr(self, name)
            if value is not None and (not isinstance(value, int) or value <= 0):
                raise InvalidOptionError(f"{name} must be a positive integer, got {value!r}")

        for name in ("min_size", "max_size"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise InvalidOptionError(f"{name} cannot be negative, got {value!r}")
        if self.min_size is not None and self.max_size is not None and self.min_size > self.max_size:
            raise InvalidOptionError(
                f"min_size ({self.min_size}KB) is larger than max_size ({self.max_size}KB)"
            )

        if self.format is not None and self.format.lower() not in SUPPORTED_FORMATS:
            raise InvalidOptionError(
                f"Unsupported format {self.format!r} (choose from {', '.join(SUPPORTED_FORMATS)})"
            )

        if self.replace and self.output is not None:
            raise InvalidOptionError("replace cannot be combined with an output path")

        if self.output is not None and not isinstance(self.output, Path):
            object.__setattr__(self, "output", Path(self.output))

    @classmethod
    def defaults(cls) -> "CompressionOptions":
        return cls()

    def effective_quality(self, fmt: Optional[str]) -> int:
        fmt = normalize_format(fmt)
        override = {
            "jpeg": self.jpeg_quality,
            "png": self.png_quality,
            "webp": self.webp_quality,
        }.get(fmt or "")
        return override if override is not None else self.quality
