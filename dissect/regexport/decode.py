from __future__ import annotations

import re
from io import BytesIO
from typing import BinaryIO

from dissect.regexport.c_regexport import c_regexport
from dissect.regexport.exceptions import BinaryParseError, DataTypeError, EscapeError

# Non-overlapping and left to right, so "\\\"" strips as "\\" followed by "\"".
RE_ESCAPED_PAIR = re.compile(r'\\[\\"]')
RE_HEX_BYTE = re.compile(r"[0-9a-fA-F]{2}")
RE_DWORD = re.compile(r"[0-9a-fA-F]{1,8}")


def has_odd_quotes(text: str) -> bool:
    """Return whether ``text`` holds an odd number of unescaped double quotes.

    An odd count means a quoted literal is still open at the end of ``text``.
    """
    return RE_ESCAPED_PAIR.sub("", text).count('"') % 2 == 1


def find_separator(text: str, sep: str = "=") -> int:
    """Return the index of the first ``sep`` that is not inside a quoted literal, or ``-1``."""
    idx = -1
    while (idx := text.find(sep, idx + 1)) != -1:
        if not has_odd_quotes(text[:idx]):
            return idx

    return -1


def unescape(text: str) -> str:
    result = []
    escaped = False

    for char in text:
        if escaped:
            if char not in ('"', "\\"):
                raise EscapeError(f"Invalid escape sequence \\{char} in {text!r}")
            result.append(char)
            escaped = False
        elif char == "\\":
            escaped = True
        else:
            result.append(char)

    if escaped:
        raise EscapeError(f"Dangling escape character at the end of {text!r}")

    return "".join(result)


def decode_hex_list(text: str) -> bytes:
    """Decode a comma separated list of hex bytes, e.g. ``40,00,25,00,``."""
    text = text.strip()
    if text.endswith(","):
        text = text[:-1]

    if not text:
        return b""

    data = bytearray()
    for token in text.split(","):
        token = token.strip()
        if not RE_HEX_BYTE.fullmatch(token):
            raise BinaryParseError(f"Invalid hex byte {token!r}")
        data.append(int(token, 16))

    return bytes(data)


def decode_dword(text: str) -> int:
    text = text.strip()
    if not RE_DWORD.fullmatch(text):
        raise DataTypeError(f"Invalid dword data {text!r}")

    return int(text, 16)


def decode_qword(data: bytes) -> int:
    if len(data) != 8:
        raise BinaryParseError(f"Expected 8 bytes of qword data, got {len(data)}")

    return int(c_regexport.QWORD_DATA(data))


def _check_utf16_terminated(data: bytes) -> None:
    if len(data) % 2 != 0:
        raise BinaryParseError(f"UTF-16 data has an odd length of {len(data)} bytes")

    if data[-2:] != b"\x00\x00":
        raise BinaryParseError("UTF-16 data is not null terminated")


def _decode_utf16(data: bytes) -> str:
    try:
        return data.decode("utf-16-le")
    except UnicodeDecodeError as e:
        raise BinaryParseError(f"Invalid UTF-16 data: {e}") from e


def decode_utf16_sz(data: bytes) -> str:
    _check_utf16_terminated(data)
    return _decode_utf16(data[:-2])


def read_wstring(stream: BinaryIO, end: int) -> bytes:
    """Read the raw bytes of a wide string up to its null terminator or ``end``."""
    wide_string = b""
    while stream.tell() < end:
        wide_char = stream.read(2)
        if wide_char == b"\x00\x00":
            return wide_string

        wide_string += wide_char

    return wide_string


def decode_utf16_multi_sz(data: bytes) -> list[str]:
    _check_utf16_terminated(data)

    # The final null pair terminates the list, everything before it is a
    # sequence of null terminated strings.
    end = len(data) - 2
    stream = BytesIO(data)

    multi_string = []
    while stream.tell() < end:
        wide_string = read_wstring(stream, end)
        multi_string.append(_decode_utf16(wide_string))

    return multi_string
