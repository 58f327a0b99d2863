import pytest

from miniredis.trans import (
    any_compare,
    any_to_bytes,
    any_to_string,
    anys_to_bytes,
    anys_to_strings,
    bytes_to_strings,
    map_to_bytes,
    strings_to_bytes,
)


def test_compare_cases():
    assert any_compare(1, 1) is True
    assert any_compare(1, None) is False
    assert any_compare(None, None) is True


def test_compare_different_types():
    assert any_compare(1, 1.0) is False
    assert any_compare("1", 1) is False
    assert any_compare("a", "a") is True


def test_bytes_to_strings_trims_crlf():
    assert bytes_to_strings([b"set\r\n", b"key", b"v\r\n\r\n"]) == ["set", "key", "v\r\n"]


def test_strings_bytes_round_trip():
    items = ["alpha", "", "caf\u00e9"]
    assert bytes_to_strings(strings_to_bytes(items)) == items


def test_non_utf8_bytes_survive_round_trip():
    raw = [b"\xff\xfe"]
    assert strings_to_bytes(bytes_to_strings(raw)) == raw


def test_map_to_bytes_alternates():
    assert map_to_bytes({"a": 1, "b": "x"}) == [b"a", b"1", b"b", b"x"]


@pytest.mark.parametrize(
    "value, expected",
    [
        (10.0, "10"),
        (1.5, "1.5"),
        (-2.5, "-2.5"),
        (123456.0, "123456"),
        (1e6, "1e+06"),
        (0.0001, "0.0001"),
        (1e-05, "1e-05"),
        (0.0, "0"),
        (float("inf"), "+Inf"),
    ],
)
def test_float_formatting(value, expected):
    assert any_to_string(value) == expected


def test_any_to_string_kinds():
    assert any_to_string(42) == "42"
    assert any_to_string("text") == "text"
    assert any_to_string(None) == ""
    assert any_to_string(True) == ""
    assert any_to_string([1]) == ""


def test_float_formatting_round_trips():
    for value in (0.1, 3.14159, -7.25, 1e-10, 2.5e20, 123.456):
        assert float(any_to_string(value)) == value


def test_any_to_bytes():
    assert any_to_bytes(7) == b"7"
    assert any_to_bytes(None) == b""


def test_anys_conversions():
    values = [1, "x", None, 2.5]
    assert anys_to_strings(values) == ["1", "x", "", "2.5"]
    assert anys_to_bytes(values) == [b"1", b"x", b"", b"2.5"]