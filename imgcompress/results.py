from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .errors import ErrorKind


NO_BENEFIT_REASON = "no compression benefit"
DRY_RUN_REASON = "would compress"


def percent_saved(original_bytes: int, final_bytes: int) -> float:
    """Percent of `original_bytes` saved, rounded to one decimal place."""
    if original_bytes <= 0:
        return 0.0
    return round((original_bytes - final_bytes) / original_bytes * 100.0, 1)


@dataclass(frozen=True)
class FileCandidate:
    """A discovered input file queued for processing."""

    path: Path
    base_dir: Path  # output paths are planned relative to this

    @classmethod
    def from_path(cls, path: Path, base_dir: Optional[Path] = None) -> "FileCandidate":
        path = Path(path)
        return cls(path=path, base_dir=Path(base_dir) if base_dir else path.parent)


# Outcomes of processing a single candidate. Exactly one per candidate.
# All are immutable (frozen=True) so a finished ledger can't drift.


@dataclass(frozen=True)
class Compressed:
    input: Path
    output: Path
    original_bytes: int
    compressed_bytes: int

    @property
    def saved_bytes(self) -> int:
        return self.original_bytes - self.compressed_bytes

    @property
    def saved_percent(self) -> float:
        return percent_saved(self.original_bytes, self.compressed_bytes)


@dataclass(frozen=True)
class Copied:
    """Compression didn't help; the original bytes are at `output` verbatim."""

    input: Path
    output: Path
    original_bytes: int
    reason: str = NO_BENEFIT_REASON

    @property
    def compressed_bytes(self) -> int:
        return self.original_bytes

    @property
    def saved_bytes(self) -> int:
        return 0

    @property
    def saved_percent(self) -> float:
        return 0.0


@dataclass(frozen=True)
class Skipped:
    input: Path
    reason: str
    original_bytes: Optional[int] = None


@dataclass(frozen=True)
class Failed:
    input: Path
    error_kind: ErrorKind
    message: str
    detail: str = ""  # raw underlying error text, shown with --verbose


CompressionOutcome = Union[Compressed, Copied, Skipped, Failed]
