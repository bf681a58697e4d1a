from __future__ import annotations

import pytest

from dissect.regexport import decode
from dissect.regexport.exceptions import BinaryParseError, DataTypeError, EscapeError


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("", False),
        ('"abc', True),
        ('"abc"', False),
        ('"a\\"b', True),
        ('"a\\"b"', False),
        ('"a\\\\"', False),
        ('"a\\\\\\"', True),
        ('abc\\"', False),
    ],
)
def test_has_odd_quotes(text: str, expected: bool) -> None:
    assert decode.has_odd_quotes(text) is expected


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ('"Name"="Value"', 6),
        ('"a=b"="c"', 5),
        ('"a\\"=b"="c"', 7),
        ('"a=b', -1),
        ("no separator", -1),
    ],
)
def test_find_separator(text: str, expected: int) -> None:
    assert decode.find_separator(text) == expected


def test_find_separator_custom() -> None:
    assert decode.find_separator('"a:b":c', ":") == 5


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("", ""),
        ("plain", "plain"),
        ('a\\"b', 'a"b'),
        ("C:\\\\Windows\\\\System32", "C:\\Windows\\System32"),
        ('\\\\\\"', '\\"'),
    ],
)
def test_unescape(text: str, expected: str) -> None:
    assert decode.unescape(text) == expected


@pytest.mark.parametrize("text", ["abc\\", "a\\nb", "\\t"])
def test_unescape_invalid(text: str) -> None:
    with pytest.raises(EscapeError):
        decode.unescape(text)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("", b""),
        ("00", b"\x00"),
        ("01,ff,7F", b"\x01\xff\x7f"),
        ("01,02,", b"\x01\x02"),
        ("  6d, 00 ,46  ", b"\x6d\x00\x46"),
    ],
)
def test_decode_hex_list(text: str, expected: bytes) -> None:
    assert decode.decode_hex_list(text) == expected


@pytest.mark.parametrize("text", ["1", "001", "zz", "01,,02", "01 02", "0x1"])
def test_decode_hex_list_invalid(text: str) -> None:
    with pytest.raises(BinaryParseError):
        decode.decode_hex_list(text)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("0000002a", 42),
        ("ffffffff", 0xFFFFFFFF),
        ("FFFFFFC4", 4294967236),
        ("1", 1),
    ],
)
def test_decode_dword(text: str, expected: int) -> None:
    assert decode.decode_dword(text) == expected


@pytest.mark.parametrize("text", ["", "123456789", "xyz", "-1"])
def test_decode_dword_invalid(text: str) -> None:
    with pytest.raises(DataTypeError):
        decode.decode_dword(text)


def test_decode_qword() -> None:
    data = bytes([0x01, 0x02, 0x03, 0x04, 0x05, 0x06, 0x07, 0x08])
    assert decode.decode_qword(data) == sum(b * 256**i for i, b in enumerate(data))
    assert decode.decode_qword(b"\xff" * 8) == 0xFFFFFFFFFFFFFFFF

    with pytest.raises(BinaryParseError):
        decode.decode_qword(b"\x00" * 4)


def test_decode_utf16_sz() -> None:
    assert decode.decode_utf16_sz("%SystemRoot%\x00".encode("utf-16-le")) == "%SystemRoot%"
    assert decode.decode_utf16_sz(b"\x00\x00") == ""


@pytest.mark.parametrize(
    "data",
    [
        b"",
        "abc".encode("utf-16-le"),
        "abc".encode("utf-16-le") + b"\x00",
        b"\x00\xd8\x00\x00",
    ],
)
def test_decode_utf16_sz_invalid(data: bytes) -> None:
    with pytest.raises(BinaryParseError):
        decode.decode_utf16_sz(data)


@pytest.mark.parametrize(
    ("data", "expected"),
    [
        ("one\x00two\x00\x00".encode("utf-16-le"), ["one", "two"]),
        (b"\x00\x00", []),
        ("one\x00\x00two\x00\x00".encode("utf-16-le"), ["one", "", "two"]),
        ("one\x00two\x00".encode("utf-16-le"), ["one", "two"]),
    ],
)
def test_decode_utf16_multi_sz(data: bytes, expected: list[str]) -> None:
    assert decode.decode_utf16_multi_sz(data) == expected


@pytest.mark.parametrize("data", [b"", b"\x00", "one".encode("utf-16-le"), b"a\x00\x00\x00\x00"])
def test_decode_utf16_multi_sz_invalid(data: bytes) -> None:
    with pytest.raises(BinaryParseError):
        decode.decode_utf16_multi_sz(data)
