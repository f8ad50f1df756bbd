from __future__ import annotations

import csv
import json
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence

from .results import CompressionOutcome, Compressed, Copied, Failed, Skipped, percent_saved


@dataclass(frozen=True)
class BatchSummary:
    compressed: int
    copied: int
    skipped: int
    failed: int
    total_original_bytes: int
    total_final_bytes: int

    @property
    def total_files(self) -> int:
        return self.compressed + self.copied + self.skipped + self.failed

    @property
    def total_saved_bytes(self) -> int:
        return self.total_original_bytes - self.total_final_bytes

    @property
    def saved_percent(self) -> float:
        return percent_saved(self.total_original_bytes, self.total_final_bytes)


def summarize(ledger: Sequence[CompressionOutcome]) -> BatchSummary:
    """
    Count outcomes and total the bytes.

    Only Compressed and Copied contribute bytes; a Copied file counts the
    same size on both sides.
    """
    compressed = copied = skipped = failed = 0
    total_original = 0
    total_final = 0

    for r in ledger:
        if isinstance(r, Compressed):
            compressed += 1
            total_original += r.original_bytes
            total_final += r.compressed_bytes
        elif isinstance(r, Copied):
            copied += 1
            total_original += r.original_bytes
            total_final += r.original_bytes
        elif isinstance(r, Skipped):
            skipped += 1
        elif isinstance(r, Failed):
            failed += 1
        else:
            raise TypeError(f"Unknown outcome type: {type(r).__name__}")

    return BatchSummary(
        compressed=compressed,
        copied=copied,
        skipped=skipped,
        failed=failed,
        total_original_bytes=total_original,
        total_final_bytes=total_final,
    )


@dataclass(frozen=True)
class FileReport:
    src_path: str
    status: str
    out_path: Optional[str]
    src_bytes: Optional[int]
    out_bytes: Optional[int]
    saved_bytes: int
    saved_percent: float
    reason: Optional[str]


@dataclass(frozen=True)
class BatchReport:
    created_utc: str
    summary: dict
    files: List[FileReport]


def file_report(r: CompressionOutcome) -> FileReport:
    if isinstance(r, (Compressed, Copied)):
        return FileReport(
            src_path=str(r.input),
            status="compressed" if isinstance(r, Compressed) else "copied",
            out_path=str(r.output),
            src_bytes=r.original_bytes,
            out_bytes=r.compressed_bytes,
            saved_bytes=r.saved_bytes,
            saved_percent=r.saved_percent,
            reason=r.reason if isinstance(r, Copied) else None,
        )
    if isinstance(r, Skipped):
        return FileReport(
            src_path=str(r.input),
            status="skipped",
            out_path=None,
            src_bytes=r.original_bytes,
            out_bytes=None,
            saved_bytes=0,
            saved_percent=0.0,
            reason=r.reason,
        )
    if isinstance(r, Failed):
        return FileReport(
            src_path=str(r.input),
            status="failed",
            out_path=None,
            src_bytes=None,
            out_bytes=None,
            saved_bytes=0,
            saved_percent=0.0,
            reason=r.message,
        )
    raise TypeError(f"Unknown outcome type: {type(r).__name__}")


def build_report(ledger: Sequence[CompressionOutcome], summary: Optional[BatchSummary] = None) -> BatchReport:
    summary = summary or summarize(ledger)
    created_utc = datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")

    summary_dict = {
        "total_files": summary.total_files,
        "compressed": summary.compressed,
        "copied": summary.copied,
        "skipped": summary.skipped,
        "failed": summary.failed,
        "total_original_bytes": summary.total_original_bytes,
        "total_final_bytes": summary.total_final_bytes,
        "saved_bytes": summary.total_saved_bytes,
        "saved_percent": summary.saved_percent,
    }

    return BatchReport(
        created_utc=created_utc,
        summary=summary_dict,
        files=[file_report(r) for r in ledger],
    )


def save_report_json(report: BatchReport, path: Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with path.open("w", encoding="utf-8") as f:
        json.dump(asdict(report), f, indent=2, ensure_ascii=False)


def save_report_csv(report: BatchReport, path: Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fieldnames = list(FileReport.__dataclass_fields__)
    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        for row in report.files:
            writer.writerow(asdict(row))


def save_report(report: BatchReport, path: Path) -> None:
    """Write JSON, or CSV when the file name ends in .csv."""
    if Path(path).suffix.lower() == ".csv":
        save_report_csv(report, path)
    else:
        save_report_json(report, path)
