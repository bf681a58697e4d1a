from __future__ import annotations

import gzip
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

import pytest

if TYPE_CHECKING:
    from collections.abc import Iterator


def absolute_path(filename: str) -> Path:
    return Path(__file__).parent / filename


def open_file_gz(name: str) -> Iterator[BinaryIO]:
    with gzip.GzipFile(absolute_path(name), "rb") as fh:
        yield fh


@pytest.fixture
def system_export() -> Iterator[BinaryIO]:
    yield from open_file_gz("_data/system.reg.gz")


@pytest.fixture
def reg_file(tmp_path: Path) -> Iterator[Path]:
    path = tmp_path / "test.reg"
    path.write_bytes(
        "Windows Registry Editor Version 5.00\r\n"
        "\r\n"
        "[HKEY_CURRENT_USER\\Software\\Test]\r\n"
        '"Name"="Value"\r\n'
        '"Num"=dword:0000002a\r\n'.encode("utf-16")
    )
    yield path
