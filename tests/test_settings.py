from dataclasses import replace
from pathlib import Path

import pytest

from imgcompress.errors import InvalidOptionError
from imgcompress.settings import CompressionOptions, normalize_format


def test_defaults():
    o = CompressionOptions.defaults()
    assert o.quality == 80
    assert o.optimize and o.rotate
    assert not o.keep_metadata
    assert not o.replace and not o.dry_run
    assert o.effective_quality("jpeg") == 80
    assert o.effective_quality("png") == 80
    assert o.effective_quality("webp") == 80


def test_defaults_are_independent():
    a = CompressionOptions.defaults()
    b = replace(a, quality=50)
    assert a.quality == 80
    assert b.quality == 50


def test_per_format_overrides():
    o = CompressionOptions(quality=70, jpeg_quality=85, png_quality=95)
    assert o.effective_quality("jpg") == 85
    assert o.effective_quality("jpeg") == 85
    assert o.effective_quality("png") == 95
    assert o.effective_quality("webp") == 70
    assert o.effective_quality("avif") == 70


@pytest.mark.parametrize("field", ["quality", "jpeg_quality", "png_quality", "webp_quality"])
@pytest.mark.parametrize("value", [0, 101, -5])
def test_quality_out_of_range(field, value):
    with pytest.raises(InvalidOptionError):
        CompressionOptions(**{field: value})


@pytest.mark.parametrize("value", [1, 100])
def test_quality_bounds_accepted(value):
    assert CompressionOptions(quality=value).quality == value


def test_invalid_dimensions():
    with pytest.raises(InvalidOptionError):
        CompressionOptions(width=0)
    with pytest.raises(InvalidOptionError):
        CompressionOptions(height=-10)


def test_min_larger_than_max():
    with pytest.raises(InvalidOptionError):
        CompressionOptions(min_size=500, max_size=100)


def test_unknown_format():
    with pytest.raises(InvalidOptionError):
        CompressionOptions(format="bmp")


def test_replace_with_output_conflicts():
    with pytest.raises(InvalidOptionError):
        CompressionOptions(replace=True, output=Path("out"))


def test_invalid_option_is_value_error():
    with pytest.raises(ValueError):
        CompressionOptions(quality=0)


def test_output_coerced_to_path():
    assert CompressionOptions(output="out").output == Path("out")


def test_normalize_format():
    assert normalize_format("JPG") == "jpeg"
    assert normalize_format(".png") == "png"
    assert normalize_format(None) is None
