from __future__ import annotations

import codecs
import io
import logging
import os
import re
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO, NamedTuple, TextIO, Union

from dissect.regexport import decode
from dissect.regexport.c_regexport import (
    HEADER,
    REG_BINARY,
    REG_DWORD,
    REG_EXPAND_SZ,
    REG_MULTI_SZ,
    REG_NONE,
    REG_QWORD,
    REG_SZ,
)
from dissect.regexport.exceptions import (
    BadStateError,
    ContinuationError,
    DataTypeError,
    EncodingError,
    HeaderError,
    KeyParseError,
    ParseError,
    RegExportError,
    RegistryKeyNotFoundError,
    RegistryValueNotFoundError,
    UnexpectedEndOfFileError,
    UnknownTypeError,
    ValueNameError,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

log = logging.getLogger(__name__)
log.setLevel(os.getenv("DISSECT_LOG_REGEXPORT", "CRITICAL"))

LINE_TERMINATOR = "\r\n"

ValueData = Union[int, str, list[str], bytes]


class Hive(str, Enum):
    HKEY_CLASSES_ROOT = "HKEY_CLASSES_ROOT"
    HKEY_CURRENT_USER = "HKEY_CURRENT_USER"
    HKEY_LOCAL_MACHINE = "HKEY_LOCAL_MACHINE"
    HKEY_USERS = "HKEY_USERS"
    HKEY_CURRENT_CONFIG = "HKEY_CURRENT_CONFIG"


class ValueType(IntEnum):
    REG_NONE = REG_NONE
    REG_SZ = REG_SZ
    REG_EXPAND_SZ = REG_EXPAND_SZ
    REG_BINARY = REG_BINARY
    REG_DWORD = REG_DWORD
    REG_MULTI_SZ = REG_MULTI_SZ
    REG_QWORD = REG_QWORD


TYPE_PREFIXES = {
    "dword": ValueType.REG_DWORD,
    "hex": ValueType.REG_BINARY,
    "hex(0)": ValueType.REG_NONE,
    "hex(2)": ValueType.REG_EXPAND_SZ,
    "hex(7)": ValueType.REG_MULTI_SZ,
    "hex(b)": ValueType.REG_QWORD,
}

RE_KEY_HEADER = re.compile(r"\[(" + "|".join(hive.value for hive in Hive) + r")\\(.+)\]")


class RegistryValueRecord(NamedTuple):
    hive: Hive
    key_path: str
    name: str
    type: ValueType
    data: ValueData


class ParserState(Enum):
    START = "start"
    FIRST_KEY = "first_key"
    NEXT_ITEM = "next_item"
    READING_STRING = "reading_string"
    READING_BYTES = "reading_bytes"


@dataclass
class PendingValue:
    """A value as read from its first line, possibly awaiting continuation lines.

    ``raw`` is text for ``REG_SZ`` and ``REG_DWORD`` and a byte buffer for all hex types.
    """

    name: str
    type: ValueType
    raw: str | bytearray
    more: bool = False


@dataclass
class ParserContext:
    filename: str
    state: ParserState = ParserState.START
    hive: Hive | None = None
    key_path: str | None = None
    pending: PendingValue | None = None
    line_number: int = 0
    line: str = ""
    records: list[RegistryValueRecord] = field(default_factory=list)


def parse_key_header(line: str) -> tuple[Hive, str] | None:
    if match := RE_KEY_HEADER.fullmatch(line):
        return Hive(match.group(1)), match.group(2)
    return None


def parse_value_line(line: str) -> PendingValue | None:
    """Split a value line into its name, type and the data found on this line.

    Returns ``None`` if the line holds no unescaped ``=``.
    """
    if (idx := decode.find_separator(line)) == -1:
        return None

    name, data = line[:idx], line[idx + 1 :]
    if name == "@":
        name = ""
    elif len(name) >= 2 and name[0] == '"' and name[-1] == '"':
        name = name[1:-1]
    else:
        raise ValueNameError(f"Value name is not a quoted string: {name!r}")

    if data.startswith('"'):
        if decode.has_odd_quotes(data):
            return PendingValue(name, ValueType.REG_SZ, data[1:] + LINE_TERMINATOR, more=True)

        if len(data) < 2 or not data.endswith('"'):
            raise DataTypeError(f"Unexpected data after string literal: {data!r}")

        return PendingValue(name, ValueType.REG_SZ, data[1:-1])

    prefix, sep, payload = data.partition(":")
    if not sep:
        raise DataTypeError(f"No type separator in value data: {data!r}")

    if (value_type := TYPE_PREFIXES.get(prefix.lower())) is None:
        raise UnknownTypeError(f"Unknown value type {prefix!r}")

    payload = payload.strip()
    more = payload.endswith("\\")

    if value_type == ValueType.REG_DWORD:
        if more:
            raise DataTypeError("Dword data can not continue on the next line")
        return PendingValue(name, value_type, payload)

    if more:
        payload = payload[:-1]

    return PendingValue(name, value_type, bytearray(decode.decode_hex_list(payload)), more=more)


def finalize_value(pending: PendingValue, hive: Hive, key_path: str) -> RegistryValueRecord:
    value_type = pending.type
    raw = pending.raw

    if value_type == ValueType.REG_SZ:
        data = decode.unescape(raw)
    elif value_type == ValueType.REG_DWORD:
        data = decode.decode_dword(raw)
    elif value_type in (ValueType.REG_BINARY, ValueType.REG_NONE):
        data = bytes(raw)
    elif value_type == ValueType.REG_EXPAND_SZ:
        data = decode.decode_utf16_sz(bytes(raw))
    elif value_type == ValueType.REG_MULTI_SZ:
        data = decode.decode_utf16_multi_sz(bytes(raw))
    elif value_type == ValueType.REG_QWORD:
        data = decode.decode_qword(bytes(raw))
    else:
        raise BadStateError(f"No decoder for value type {value_type!r}")

    return RegistryValueRecord(hive, key_path, pending.name, value_type, data)


def _is_skippable(line: str) -> bool:
    return not line or line.startswith(";")


def _emit(ctx: ParserContext, pending: PendingValue) -> None:
    if ctx.hive is None or ctx.key_path is None:
        raise BadStateError("Value encountered before any key")

    record = finalize_value(pending, ctx.hive, ctx.key_path)
    log.debug("Value %r (%s) in %s\\%s", record.name, record.type.name, record.hive.value, record.key_path)

    ctx.records.append(record)
    ctx.pending = None
    ctx.state = ParserState.NEXT_ITEM


def _parse_start(ctx: ParserContext, raw_line: str) -> None:
    if not raw_line.strip():
        return

    if raw_line != HEADER:
        raise HeaderError(f"Expected {HEADER!r}")

    ctx.state = ParserState.FIRST_KEY


def _parse_first_key(ctx: ParserContext, line: str) -> None:
    if _is_skippable(line):
        return

    if (key := parse_key_header(line)) is None:
        raise KeyParseError("Expected a key header")

    ctx.hive, ctx.key_path = key
    log.debug("Key %s\\%s", ctx.hive.value, ctx.key_path)
    ctx.state = ParserState.NEXT_ITEM


def _parse_next_item(ctx: ParserContext, line: str) -> None:
    if _is_skippable(line):
        return

    if key := parse_key_header(line):
        ctx.hive, ctx.key_path = key
        log.debug("Key %s\\%s", ctx.hive.value, ctx.key_path)
        return

    if (pending := parse_value_line(line)) is None:
        if line.startswith("["):
            raise KeyParseError("Invalid key header")
        raise ValueNameError("Expected a key header or a value")

    if not pending.more:
        _emit(ctx, pending)
        return

    log.debug("Value %r continues on the next line", pending.name)
    ctx.pending = pending
    ctx.state = ParserState.READING_STRING if pending.type == ValueType.REG_SZ else ParserState.READING_BYTES


def _parse_string_continuation(ctx: ParserContext, raw_line: str) -> None:
    pending = ctx.pending

    if not decode.has_odd_quotes(raw_line):
        pending.raw += raw_line + LINE_TERMINATOR
        return

    closing = raw_line.rstrip()
    if not closing.endswith('"'):
        raise ContinuationError("String literal is not closed at the end of the line")

    pending.raw += closing[:-1]
    pending.more = False
    _emit(ctx, pending)


def _parse_bytes_continuation(ctx: ParserContext, line: str) -> None:
    pending = ctx.pending

    if line.endswith("\\"):
        pending.raw += decode.decode_hex_list(line[:-1])
        return

    pending.raw += decode.decode_hex_list(line)
    pending.more = False
    _emit(ctx, pending)


def _parse_line(ctx: ParserContext, raw_line: str) -> None:
    line = raw_line.strip()
    state = ctx.state

    if state == ParserState.START:
        _parse_start(ctx, raw_line)
    elif state == ParserState.FIRST_KEY:
        _parse_first_key(ctx, line)
    elif state == ParserState.NEXT_ITEM:
        _parse_next_item(ctx, line)
    elif state == ParserState.READING_STRING and ctx.pending is not None:
        _parse_string_continuation(ctx, raw_line)
    elif state == ParserState.READING_BYTES and ctx.pending is not None:
        _parse_bytes_continuation(ctx, line)
    else:
        raise BadStateError(f"No transition from state {state!r}")


def parse_lines(lines: Iterable[str], filename: str = "<unknown>") -> list[RegistryValueRecord]:
    """Parse the lines of a .reg export into value records.

    Trailing line terminators are ignored. The records are only
    returned once the whole input parsed successfully, any failure raises a
    :class:`ParseError` pointing at the offending line.
    """
    ctx = ParserContext(filename)

    try:
        for raw_line in lines:
            raw_line = raw_line.rstrip("\r\n")
            ctx.line_number += 1
            ctx.line = raw_line.strip()
            _parse_line(ctx, raw_line)

        if ctx.state != ParserState.NEXT_ITEM:
            ctx.line = ""
            raise UnexpectedEndOfFileError(f"Unexpected end of file in state {ctx.state.value}")
    except EncodingError as e:
        # The undecodable bytes belong to the line following the last one read
        raise ParseError(ctx.filename, ctx.line_number + 1, "", e) from e
    except RegExportError as e:
        raise ParseError(ctx.filename, ctx.line_number, ctx.line, e) from e

    return ctx.records


def _sniff_encoding(data: bytes, encoding: str | None) -> tuple[str, int]:
    """Return the codec for ``data`` and the size of its byte order mark."""
    if data.startswith(codecs.BOM_UTF8):
        return "utf-8", len(codecs.BOM_UTF8)

    if data.startswith(codecs.BOM_UTF16_LE):
        return "utf-16-le", len(codecs.BOM_UTF16_LE)

    if data.startswith(codecs.BOM_UTF16_BE):
        return "utf-16-be", len(codecs.BOM_UTF16_BE)

    return encoding or "utf-8", 0


def read_lines(fh: TextIO | BinaryIO, encoding: str | None = None) -> Iterator[str]:
    """Yield the lines of a .reg export without line terminators.

    Binary file objects are decoded using their byte order mark, falling back
    to ``encoding`` (utf-8 by default). Regedit writes UTF-16LE with a BOM.
    Input that can not be decoded raises an :class:`EncodingError` once the
    lines before the offending bytes have been yielded.
    """
    error = None

    if isinstance(fh, io.TextIOBase):
        text_fh = fh
    else:
        data = fh.read()
        detected, bom_size = _sniff_encoding(data, encoding)
        data = data[bom_size:]
        log.debug("Decoding input as %s", detected)

        try:
            text = data.decode(detected)
        except UnicodeDecodeError as e:
            text = data[: e.start].decode(detected)
            error = e

        text_fh = io.StringIO(text, newline=None)

    try:
        for idx, line in enumerate(text_fh):
            # The last line of a partially decoded input is incomplete
            if error is not None and not line.endswith("\n"):
                break

            line = line.rstrip("\r\n")
            if idx == 0:
                line = line.lstrip("\ufeff")
            yield line
    except UnicodeDecodeError as e:
        error = e

    if error is not None:
        raise EncodingError(f"Can not decode input as {error.encoding}: {error.reason}") from error


def loads(text: str, filename: str = "<string>") -> list[RegistryValueRecord]:
    return parse_lines(read_lines(io.StringIO(text, newline=None)), filename)


def load(path: str | Path, encoding: str | None = None) -> list[RegistryValueRecord]:
    path = Path(path)
    with path.open("rb") as fh:
        return parse_lines(read_lines(fh, encoding), str(path))


class RegistryExport:
    """The values of a .reg export file, parsed eagerly on construction."""

    def __init__(self, fh: TextIO | BinaryIO, filename: str | None = None, encoding: str | None = None):
        self.fh = fh
        self.filename = filename or getattr(fh, "name", "<unknown>")
        self.records = parse_lines(read_lines(fh, encoding), self.filename)

        self._keys: dict[tuple[Hive, str], list[RegistryValueRecord]] = {}
        for record in self.records:
            self._keys.setdefault((record.hive, record.key_path.lower()), []).append(record)

    def __repr__(self) -> str:
        return f"<RegistryExport {self.filename} records={len(self.records)}>"

    def __iter__(self) -> Iterator[RegistryValueRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    def keys(self) -> Iterator[tuple[Hive, str]]:
        """Yield the distinct keys that hold at least one value, in file order."""
        for records in self._keys.values():
            yield records[0].hive, records[0].key_path

    def open(self, path: str) -> list[RegistryValueRecord]:
        hive_name, _, key_path = path.strip("\\").partition("\\")

        try:
            hive = Hive(hive_name.upper())
        except ValueError:
            raise RegistryKeyNotFoundError(path)

        try:
            return self._keys[(hive, key_path.lower())]
        except KeyError:
            raise RegistryKeyNotFoundError(path)

    def value(self, path: str, name: str) -> RegistryValueRecord:
        for record in self.open(path):
            if record.name.lower() == name.lower():
                return record

        raise RegistryValueNotFoundError(name)
