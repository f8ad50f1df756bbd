import pytest

from imgcompress.sizes import format_bytes, parse_bytes


@pytest.mark.parametrize(
    "num, expected",
    [
        (0, "0 B"),
        (512, "512 B"),
        (1024, "1 KB"),
        (1536, "1.5 KB"),
        (1024 * 1024, "1 MB"),
        (int(2.25 * 1024**3), "2.25 GB"),
    ],
)
def test_format_bytes(num, expected):
    assert format_bytes(num) == expected


def test_format_negative():
    assert format_bytes(-2048) == "-2 KB"


@pytest.mark.parametrize("num", [1, 999, 204800, 122880, 5_000_000, 3 * 1024**3 + 12345])
def test_round_trip_within_unit_rounding(num):
    text = format_bytes(num)
    unit = {"B": 1, "KB": 1024, "MB": 1024**2, "GB": 1024**3}[text.split()[1]]
    assert parse_bytes(text) == pytest.approx(num, abs=0.005 * unit)


def test_parse_bytes_variants():
    assert parse_bytes("1.5KB") == 1536
    assert parse_bytes("2 mb") == 2 * 1024**2
    assert parse_bytes("1 TB") == 1024**4


@pytest.mark.parametrize("text", ["", "abc", "12 parsecs", None])
def test_parse_bytes_garbage(text):
    assert parse_bytes(text) == 0
