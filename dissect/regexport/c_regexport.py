from __future__ import annotations

from dissect.cstruct import cstruct

regexport_def = """
typedef ULONGLONG   QWORD_DATA;
"""

c_regexport = cstruct().load(regexport_def)

HEADER = "Windows Registry Editor Version 5.00"

REG_NONE = 0x0
REG_SZ = 0x1
REG_EXPAND_SZ = 0x2
REG_BINARY = 0x3
REG_DWORD = 0x4
REG_MULTI_SZ = 0x7
REG_QWORD = 0xB
