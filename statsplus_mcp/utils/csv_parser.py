"""
CSV decoding for StatsPlus export endpoints.

StatsPlus serves most of its data as CSV with a header row. Values that look
numeric are coerced to ``int``/``float`` so the rows compare naturally against
ids passed in by tool callers.
"""

import csv
import math
import re
from typing import Dict, List, Union

CsvValue = Union[str, int, float]
CsvRow = Dict[str, CsvValue]

_INTEGER_RE = re.compile(r"[+-]?\d+")


def coerce_value(raw: str) -> CsvValue:
    """Return ``raw`` as a number if the whole trimmed value is a finite number."""
    text = raw.strip()
    if not text or "_" in text:
        return raw
    if _INTEGER_RE.fullmatch(text):
        return int(text)
    try:
        number = float(text)
    except ValueError:
        return raw
    if not math.isfinite(number):
        return raw
    return number


def parse_csv_row(line: str) -> List[str]:
    """Split a single CSV line, honouring double-quoted fields and ``""`` escapes."""
    for fields in csv.reader([line]):
        return fields
    return []


def parse_csv(text: str) -> List[CsvRow]:
    """
    Parse a CSV document with a header row into a list of dicts.

    Args:
        text: Raw response body

    Returns:
        One dict per non-blank data line, keyed by the header names
    """
    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    if len(lines) < 2:
        return []

    headers = parse_csv_row(lines[0].lstrip("\ufeff"))
    rows: List[CsvRow] = []

    for line in lines[1:]:
        line = line.strip()
        if not line:
            continue
        values = parse_csv_row(line)
        row: CsvRow = {}
        for index, header in enumerate(headers):
            raw = values[index] if index < len(values) else ""
            row[header] = coerce_value(raw)
        rows.append(row)

    return rows
