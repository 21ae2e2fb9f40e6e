"""CSV record source producing raw rows for the normalizer."""

from __future__ import annotations

import csv
import io
from pathlib import Path
from typing import Dict, List, TextIO

from services.errors import BatchInvalid

_MISSING = object()
_EXTRA_KEY = "__extra_fields__"


def read_csv_rows(stream: TextIO) -> List[Dict[str, str]]:
    """Read every data row of a delimited text stream.

    Blank lines are skipped. Raises ``BatchInvalid`` when there is no header or
    when any row's field count differs from the header's.
    """
    reader = csv.DictReader(stream, restkey=_EXTRA_KEY, restval=_MISSING)
    try:
        if not reader.fieldnames:
            raise BatchInvalid("CSV file is missing a header row.")

        width = len(reader.fieldnames)
        rows: List[Dict[str, str]] = []
        for row in reader:
            if _EXTRA_KEY in row:
                raise BatchInvalid(
                    f"Row {reader.line_num} has more fields than the header ({width})."
                )
            if any(value is _MISSING for value in row.values()):
                raise BatchInvalid(
                    f"Row {reader.line_num} has fewer fields than the header ({width})."
                )
            rows.append(row)
    except csv.Error as exc:
        raise BatchInvalid(f"Malformed CSV near line {reader.line_num}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise BatchInvalid("CSV file is not valid UTF-8 text.") from exc
    return rows


def read_csv_bytes(data: bytes, encoding: str = "utf-8-sig") -> List[Dict[str, str]]:
    if not data.strip():
        raise BatchInvalid("CSV file is empty.")
    try:
        text = data.decode(encoding)
    except UnicodeDecodeError as exc:
        raise BatchInvalid("CSV file is not valid UTF-8 text.") from exc
    return read_csv_rows(io.StringIO(text, newline=""))


def read_csv_file(path: Path) -> List[Dict[str, str]]:
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise BatchInvalid(f"Could not read {path}: {exc.strerror or exc}") from exc
    return read_csv_bytes(data)
