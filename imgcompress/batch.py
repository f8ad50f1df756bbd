from __future__ import annotations

import glob
import logging
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from .compressor import compress_file
from .engine import ImageCodec
from .errors import ERROR_MESSAGES, InputNotFoundError, classify_error
from .paths import DEFAULT_OUTPUT_DIRNAME, SUPPORTED_EXTS, plan_output_path
from .results import DRY_RUN_REASON, CompressionOutcome, Failed, FileCandidate, Skipped
from .settings import CompressionOptions


logger = logging.getLogger(__name__)

BatchLedger = Tuple[CompressionOutcome, ...]


def _is_relative_to(child: Path, parent: Path) -> bool:
    try:
        child.relative_to(parent)
        return True
    except ValueError:
        return False


def iter_images(root: Path, exclude_dir: Optional[Path] = None) -> Iterable[Path]:
    """
    Yield supported images under `root`, recursively, in sorted order.

    exclude_dir:
        Files inside this directory are skipped, so output written inside
        the input tree isn't picked up again on the next run.
    """
    root = Path(root)
    exclude_resolved = exclude_dir.resolve() if exclude_dir else None
    seen = set()

    for f in sorted(root.rglob("*")):
        if not f.is_file():
            continue
        if f.suffix.lower() not in SUPPORTED_EXTS:
            continue

        resolved = f.resolve()
        if resolved in seen:
            continue
        if exclude_resolved and _is_relative_to(resolved, exclude_resolved):
            continue

        seen.add(resolved)
        yield f


def read_list_file(list_file: Path) -> List[Path]:
    """One path per line; blank lines and lines starting with '#' are ignored."""
    list_file = Path(list_file)
    try:
        content = list_file.read_text(encoding="utf-8")
    except OSError as exc:
        raise InputNotFoundError(f"Cannot read list file {list_file}: {exc}") from exc

    paths: List[Path] = []
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        paths.append(Path(line))
    return paths


def resolve_candidates(path: str, options: CompressionOptions) -> List[FileCandidate]:
    """
    Turn a user supplied path into candidates.

    - directory: every supported image below it (recursive)
    - file:      just that file
    - otherwise: a glob pattern; no matches raises InputNotFoundError
    """
    p = Path(path)

    if p.is_dir():
        root = p.resolve()
        exclude = options.output if options.output is not None else root / DEFAULT_OUTPUT_DIRNAME
        return [FileCandidate.from_path(f, base_dir=root) for f in iter_images(root, exclude_dir=exclude)]

    if p.is_file():
        return [FileCandidate.from_path(p)]

    matches = sorted(set(glob.glob(str(path), recursive=True)))
    files = [Path(m) for m in matches if Path(m).is_file()]
    if not files:
        raise InputNotFoundError(f"Path not found: {path}")
    return [FileCandidate.from_path(f) for f in files]


def candidates_from_list(list_file: Path) -> List[FileCandidate]:
    return [FileCandidate.from_path(p) for p in read_list_file(list_file)]


def _size_filter_reason(size_bytes: int, options: CompressionOptions) -> Optional[str]:
    size_kb = size_bytes / 1024
    if options.min_size is not None and size_kb < options.min_size:
        return f"Smaller than {options.min_size:g}KB"
    if options.max_size is not None and size_kb > options.max_size:
        return f"Larger than {options.max_size:g}KB"
    return None


def run_batch(
    candidates: Sequence[FileCandidate],
    options: CompressionOptions,
    codec: Optional[ImageCodec] = None,
    single_file: bool = False,
    progress_callback: Optional[Callable[[int, int, Path], None]] = None,
) -> BatchLedger:
    """
    Process candidates one at a time, in order, and return the ledger.

    Never stops early: missing files, filtered files and failures all get an
    outcome and the loop moves on.
    """
    ledger: List[CompressionOutcome] = []
    total = len(candidates)

    for idx, cand in enumerate(candidates, start=1):
        if progress_callback:
            progress_callback(idx, total, cand.path)

        # Discovery records no sizes; stat at processing time.
        try:
            size_bytes = cand.path.stat().st_size
        except OSError as exc:
            kind = classify_error(exc)
            ledger.append(
                Failed(
                    input=cand.path,
                    error_kind=kind,
                    message=f"Failed to compress {cand.path.name}: {ERROR_MESSAGES[kind]}",
                    detail=str(exc),
                )
            )
            continue

        reason = _size_filter_reason(size_bytes, options)
        if reason:
            logger.debug("Skipping %s: %s", cand.path, reason)
            ledger.append(Skipped(input=cand.path, reason=reason, original_bytes=size_bytes))
            continue

        if options.dry_run:
            ledger.append(Skipped(input=cand.path, reason=DRY_RUN_REASON, original_bytes=size_bytes))
            continue

        if options.replace:
            out_path = cand.path
        else:
            out_path = plan_output_path(cand.path, cand.base_dir, options, single_file=single_file)
        logger.debug("%s -> %s", cand.path, out_path)

        ledger.append(compress_file(cand.path, out_path, options, codec=codec))

    return tuple(ledger)
