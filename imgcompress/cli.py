from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from . import __version__
from .batch import BatchLedger, candidates_from_list, resolve_candidates, run_batch
from .errors import InputNotFoundError, InvalidOptionError
from .report import build_report, save_report, summarize
from .results import DRY_RUN_REASON, Compressed, Copied, Failed, Skipped
from .settings import SUPPORTED_FORMATS, CompressionOptions
from .sizes import format_bytes
from .stats import analyze_images


logger = logging.getLogger(__name__)

EXAMPLES = """\
Examples:
  img-compress compress image.jpg                  # Compress single image
  img-compress compress .                          # Compress all images in current directory
  img-compress compress ./images -q 90 -f webp     # Convert to WebP with quality 90
  img-compress compress photo.png --replace        # Replace original file
  img-compress batch files.txt -o out/             # Compress paths listed in files.txt
  img-compress stats ./images                      # Sizes and dimensions, no writes
"""


def _quality(text: str) -> int:
    value = int(text)
    if not 1 <= value <= 100:
        raise argparse.ArgumentTypeError("quality must be between 1 and 100")
    return value


def _add_compression_args(p: argparse.ArgumentParser, full: bool = True) -> None:
    # Quality
    p.add_argument("-q", "--quality", type=_quality, default=80, help="General quality (1-100), default 80")
    p.add_argument("--jpg-quality", type=_quality, default=None, help="JPEG quality (defaults to --quality)")
    p.add_argument("--png-quality", type=_quality, default=None, help="PNG quality (defaults to --quality)")
    p.add_argument("--webp-quality", type=_quality, default=None, help="WebP quality (defaults to --quality)")

    # Format / resize
    p.add_argument("-f", "--format", choices=SUPPORTED_FORMATS, default=None, help="Output format")
    p.add_argument("-W", "--width", type=int, default=None, help="Max width (keeps aspect, never enlarges)")
    p.add_argument("-H", "--height", type=int, default=None, help="Max height (keeps aspect, never enlarges)")

    # Output
    p.add_argument("-o", "--output", default=None, help="Output directory (or file for a single image)")
    p.add_argument("--report", default=None, help="Write a JSON (or .csv) report to this path")
    p.add_argument("-v", "--verbose", action="store_true", help="Show detailed error messages")

    if not full:
        return

    p.add_argument("--replace", action="store_true", help="Replace original files (use with caution!)")
    p.add_argument("--dry-run", action="store_true", help="Preview what would be compressed")
    p.add_argument("--keep-structure", action="store_true", help="Keep directory structure under --output")
    p.add_argument("--min-size", type=float, default=None, help="Only compress files of at least this many KB")
    p.add_argument("--max-size", type=float, default=None, help="Only compress files of at most this many KB")
    p.add_argument("--no-rotate", action="store_true", help="Disable auto-rotation from EXIF orientation")
    p.add_argument("--keep-metadata", action="store_true", help="Preserve EXIF metadata (default: strip)")
    p.add_argument("--no-optimize", action="store_true", help="Faster, less thorough encoding")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="img-compress",
        description="Compress images - single file, directory, glob pattern or list file",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = p.add_subparsers(dest="command", required=True)

    comp = sub.add_parser("compress", help="Compress a file, directory or glob pattern")
    comp.add_argument("path", nargs="?", default=None, help="Image file, directory or glob pattern")
    _add_compression_args(comp)

    batch = sub.add_parser("batch", help="Compress images listed in a text file (one path per line)")
    batch.add_argument("list_file", help="Text file with one image path per line; '#' starts a comment")
    _add_compression_args(batch, full=False)

    stats = sub.add_parser("stats", help="Analyze images without compressing")
    stats.add_argument("path", nargs="?", default=".", help="Image file or directory (default: .)")

    return p


def options_from_args(args: argparse.Namespace) -> CompressionOptions:
    return CompressionOptions(
        quality=args.quality,
        jpeg_quality=args.jpg_quality,
        png_quality=args.png_quality,
        webp_quality=args.webp_quality,
        format=args.format,
        width=args.width,
        height=args.height,
        output=Path(args.output) if args.output else None,
        keep_structure=getattr(args, "keep_structure", False),
        replace=getattr(args, "replace", False),
        dry_run=getattr(args, "dry_run", False),
        min_size=getattr(args, "min_size", None),
        max_size=getattr(args, "max_size", None),
        rotate=not getattr(args, "no_rotate", False),
        keep_metadata=getattr(args, "keep_metadata", False),
        optimize=not getattr(args, "no_optimize", False),
        verbose=bool(args.verbose),
    )


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("PIL").setLevel(logging.WARNING)


def _progress(idx: int, total: int, path: Path) -> None:
    logger.info("Processing (%d/%d): %s", idx, total, path.name)


def _row(cols: Sequence[str]) -> str:
    name, orig, comp, saved, status = cols
    return f"{name[:30]:<30} {orig:>10} {comp:>10} {saved:>7}  {status}"


def print_results(ledger: BatchLedger, verbose: bool = False) -> None:
    print()
    print(_row(("File", "Original", "Compressed", "Saved", "Status")))

    for r in ledger:
        name = r.input.name
        if isinstance(r, Compressed):
            print(_row((name, format_bytes(r.original_bytes), format_bytes(r.compressed_bytes),
                        f"{r.saved_percent:.1f}%", "Compressed")))
        elif isinstance(r, Copied):
            orig = format_bytes(r.original_bytes)
            print(_row((name, orig, orig, "0%", "Copied (no compression benefit)")))
        elif isinstance(r, Skipped):
            orig = format_bytes(r.original_bytes) if r.original_bytes is not None else "-"
            status = "Dry run" if r.reason == DRY_RUN_REASON else r.reason
            print(_row((name, orig, "-", "-", status)))
        elif isinstance(r, Failed):
            print(_row((name, "-", "-", "-", r.message)))
            if verbose and r.detail:
                print(f"    {r.detail}")
        else:
            raise TypeError(f"Unknown outcome type: {type(r).__name__}")

    summary = summarize(ledger)
    processed = summary.compressed + summary.copied
    print(f"\nCompleted: {processed} processed, {summary.skipped} skipped, {summary.failed} errors")

    if processed:
        print("\nSummary:")
        if summary.compressed:
            print(f"  {summary.compressed} images compressed")
        if summary.copied:
            print(f"  {summary.copied} images copied (no compression benefit)")
        print(f"  Total saved   : {format_bytes(summary.total_saved_bytes)} ({summary.saved_percent:.1f}%)")
        print(f"  Original total: {format_bytes(summary.total_original_bytes)}")
        print(f"  Final total   : {format_bytes(summary.total_final_bytes)}")

    if summary.failed and not verbose:
        print("\nHint: use -v or --verbose to see detailed error messages")


def _finish(ledger: BatchLedger, args: argparse.Namespace) -> int:
    print_results(ledger, verbose=bool(args.verbose))
    if args.report:
        report_path = Path(args.report)
        save_report(build_report(ledger), report_path)
        print("\nReport written:", report_path)
    return 0


def cmd_compress(args: argparse.Namespace) -> int:
    if args.path is None:
        build_parser().print_help()
        return 0

    options = options_from_args(args)
    candidates = resolve_candidates(args.path, options)
    single_file = Path(args.path).is_file()
    print(f"Found {len(candidates)} image{'s' if len(candidates) != 1 else ''}")

    ledger = run_batch(candidates, options, single_file=single_file, progress_callback=_progress)
    return _finish(ledger, args)


def cmd_batch(args: argparse.Namespace) -> int:
    options = options_from_args(args)
    candidates = candidates_from_list(Path(args.list_file))
    if not candidates:
        print("No files in list")
        return 0

    ledger = run_batch(candidates, options, progress_callback=_progress)
    return _finish(ledger, args)


def cmd_stats(args: argparse.Namespace) -> int:
    analysis = analyze_images(Path(args.path))

    print(f"{'File':<50} {'Size':>10} {'Dimensions':>12}  Format")
    for f in analysis.files:
        print(f"{str(f.path)[:50]:<50} {format_bytes(f.size_bytes):>10} {f.dimensions:>12}  {f.format}")

    print(f"\nTotal: {analysis.total_files} files, {format_bytes(analysis.total_bytes)}")
    print(f"Average size: {format_bytes(analysis.average_bytes)}")
    print(f"Estimated savings with compression: ~{format_bytes(analysis.estimated_savings)}")
    return 0


COMMANDS = {
    "compress": cmd_compress,
    "batch": cmd_batch,
    "stats": cmd_stats,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(bool(getattr(args, "verbose", False)))

    try:
        return COMMANDS[args.command](args)
    except InvalidOptionError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    except InputNotFoundError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
