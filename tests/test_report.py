import csv
import json
from pathlib import Path

import pytest

from imgcompress.errors import ErrorKind
from imgcompress.report import build_report, save_report, save_report_csv, save_report_json, summarize
from imgcompress.results import Compressed, Copied, Failed, Skipped

LEDGER = (
    Compressed(input=Path("a.jpg"), output=Path("out/a.jpg"), original_bytes=1000, compressed_bytes=600),
    Copied(input=Path("b.png"), output=Path("out/b.png"), original_bytes=500),
    Skipped(input=Path("c.jpg"), reason="Smaller than 100KB", original_bytes=50),
    Failed(input=Path("d.jpg"), error_kind=ErrorKind.CODEC_ERROR, message="Failed to compress d.jpg: bad"),
)


def test_summarize_counts_and_bytes():
    s = summarize(LEDGER)
    assert (s.compressed, s.copied, s.skipped, s.failed) == (1, 1, 1, 1)
    assert s.total_files == 4
    assert s.total_original_bytes == 1500
    assert s.total_final_bytes == 1100
    assert s.total_saved_bytes == 400
    assert s.saved_percent == 26.7


def test_summarize_empty_has_no_division_by_zero():
    s = summarize(())
    assert s.total_original_bytes == 0
    assert s.saved_percent == 0.0


def test_summarize_rejects_unknown_outcomes():
    with pytest.raises(TypeError):
        summarize([object()])


def test_build_report():
    report = build_report(LEDGER)
    assert report.created_utc.endswith("Z")
    assert report.summary["compressed"] == 1
    assert report.summary["saved_bytes"] == 400
    assert [f.status for f in report.files] == ["compressed", "copied", "skipped", "failed"]
    assert report.files[0].saved_percent == 40.0
    assert report.files[1].reason == "no compression benefit"
    assert report.files[3].reason == "Failed to compress d.jpg: bad"


def test_save_report_json(tmp_path):
    path = tmp_path / "reports" / "run.json"
    save_report_json(build_report(LEDGER), path)

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["summary"]["total_files"] == 4
    assert data["files"][2]["status"] == "skipped"


def test_save_report_csv(tmp_path):
    path = tmp_path / "run.csv"
    save_report_csv(build_report(LEDGER), path)

    with path.open(encoding="utf-8", newline="") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 4
    assert rows[0]["src_path"] == "a.jpg"
    assert rows[0]["saved_bytes"] == "400"


def test_save_report_picks_format_by_suffix(tmp_path):
    save_report(build_report(LEDGER), tmp_path / "r.CSV")
    assert (tmp_path / "r.CSV").read_text(encoding="utf-8").startswith("src_path,")

    save_report(build_report(LEDGER), tmp_path / "r.json")
    assert json.loads((tmp_path / "r.json").read_text(encoding="utf-8"))["files"]
