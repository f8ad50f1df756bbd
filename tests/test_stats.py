from pathlib import Path

import pytest
from PIL import Image

from imgcompress.errors import InputNotFoundError
from imgcompress.stats import analyze_images


def test_analyze_directory(tmp_path):
    Image.new("RGB", (30, 20), "red").save(tmp_path / "a.png")
    Image.new("RGB", (10, 40), "blue").save(tmp_path / "b.jpg")
    (tmp_path / "broken.webp").write_bytes(b"junk")
    before = sorted(p.name for p in tmp_path.iterdir())

    analysis = analyze_images(tmp_path)

    by_name = {f.path.name: f for f in analysis.files}
    assert by_name["a.png"].dimensions == "30x20"
    assert by_name["a.png"].format == "png"
    assert by_name["b.jpg"].format == "jpeg"
    assert by_name["broken.webp"].format == "unknown"
    assert by_name["broken.webp"].dimensions == "-"

    assert analysis.total_files == 3
    assert analysis.total_bytes == sum(f.size_bytes for f in analysis.files)
    assert analysis.estimated_savings == pytest.approx(analysis.total_bytes * 0.3)
    assert sorted(p.name for p in tmp_path.iterdir()) == before


def test_analyze_single_file(tmp_path):
    p = tmp_path / "one.png"
    Image.new("L", (5, 5)).save(p)
    analysis = analyze_images(p)
    assert analysis.total_files == 1
    assert analysis.average_bytes == p.stat().st_size


def test_analyze_missing_path(tmp_path):
    with pytest.raises(InputNotFoundError):
        analyze_images(tmp_path / "nope")


def test_unreadable_file_is_unknown(tmp_path, monkeypatch):
    Image.new("RGB", (30, 20)).save(tmp_path / "a.png")
    locked = tmp_path / "locked.png"
    Image.new("RGB", (30, 20)).save(locked)
    real_read_bytes = Path.read_bytes

    def guarded_read_bytes(self):
        if self.name == "locked.png":
            raise PermissionError(13, "Permission denied", str(self))
        return real_read_bytes(self)

    monkeypatch.setattr(Path, "read_bytes", guarded_read_bytes)

    analysis = analyze_images(tmp_path)

    by_name = {f.path.name: f for f in analysis.files}
    assert by_name["locked.png"].format == "unknown"
    assert by_name["locked.png"].size_bytes == 0
    assert by_name["a.png"].format == "png"
    assert analysis.total_files == 2
