from __future__ import annotations


class Error(Exception):
    pass


class RegistryKeyNotFoundError(Error):
    pass


class RegistryValueNotFoundError(Error):
    pass


class RegExportError(Error):
    """Base class for everything that can go wrong while decoding a .reg file."""


class HeaderError(RegExportError):
    pass


class KeyParseError(RegExportError):
    pass


class ValueNameError(RegExportError):
    pass


class DataTypeError(RegExportError):
    pass


class UnknownTypeError(RegExportError):
    pass


class BinaryParseError(RegExportError):
    pass


class EncodingError(RegExportError):
    pass


class EscapeError(RegExportError):
    pass


class ContinuationError(RegExportError):
    pass


class UnexpectedEndOfFileError(RegExportError):
    pass


class BadStateError(RegExportError):
    pass


class ParseError(Error):
    """Raised by the parser, wraps a :class:`RegExportError` with its location in the input."""

    def __init__(self, filename: str, line_number: int, line: str, cause: RegExportError):
        self.filename = filename
        self.line_number = line_number
        self.line = line
        self.cause = cause

        super().__init__(filename, line_number, line, cause)

    def __str__(self) -> str:
        return f"{self.filename}:{self.line_number}: {self.cause.__class__.__name__}: {self.cause} (line {self.line!r})"
