from dissect.regexport.exceptions import (
    Error,
    ParseError,
    RegExportError,
    RegistryKeyNotFoundError,
    RegistryValueNotFoundError,
)
from dissect.regexport.regexport import (
    Hive,
    RegistryExport,
    RegistryValueRecord,
    ValueType,
    load,
    loads,
    parse_lines,
)


__all__ = [
    "Hive",
    "RegistryExport",
    "RegistryValueRecord",
    "ValueType",
    "load",
    "loads",
    "parse_lines",
    "Error",
    "ParseError",
    "RegExportError",
    "RegistryKeyNotFoundError",
    "RegistryValueNotFoundError",
]
