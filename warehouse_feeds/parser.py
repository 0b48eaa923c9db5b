"""Forgiving CSV parser and SKU-column detection for published feeds."""

from __future__ import annotations

import re
from collections.abc import Mapping

from .models import Record

SKU_FIELD_ALIASES = (
    "SKU",
    "ITEM NO",
    "ITEM_NO",
    "ITEMNO",
    "ITEM CODE",
    "ITEM",
    "SKU NO",
    "SKU#",
    "PRODUCT CODE",
    "PRODUCT",
    "CODE",
)

_SKU_FIELD_PATTERN = re.compile(r"sku|item.?no|code", re.IGNORECASE)


def _scan_rows(text: str) -> list[list[str]]:
    """Split raw text into rows of untrimmed cells.

    Never raises: stray quotes simply toggle quoted mode and an unterminated
    quoted field runs to the end of the input.
    """

    rows: list[list[str]] = []
    row: list[str] = []
    field: list[str] = []
    in_quotes = False
    index = 0
    length = len(text)

    while index < length:
        char = text[index]

        if char == '"':
            if in_quotes and index + 1 < length and text[index + 1] == '"':
                field.append('"')
                index += 2
                continue
            in_quotes = not in_quotes
            index += 1
            continue

        if not in_quotes and char == ",":
            row.append("".join(field))
            field = []
            index += 1
            continue

        if not in_quotes and char in "\r\n":
            if field or row:
                row.append("".join(field))
                rows.append(row)
                row = []
                field = []
            if char == "\r" and index + 1 < length and text[index + 1] == "\n":
                index += 1
            index += 1
            continue

        field.append(char)
        index += 1

    if field or row:
        row.append("".join(field))
        rows.append(row)

    return rows


def _is_blank_row(cells: list[str]) -> bool:
    """Return True when a row has no cells or only whitespace cells."""

    return all(cell.strip() == "" for cell in cells)


def parse_csv(text: str) -> list[Record]:
    """Parse delimited feed text into records keyed by the header row.

    The first row names the columns. Values beyond the header get synthesized
    `COL<index>` names; values missing from short rows are simply absent.
    """

    rows = _scan_rows(text)
    if not rows:
        return []

    header = [name.strip() for name in rows[0]]
    records: list[Record] = []
    for cells in rows[1:]:
        if _is_blank_row(cells):
            continue

        record: Record = {}
        for index, value in enumerate(cells):
            name = header[index] if index < len(header) and header[index] else f"COL{index}"
            record[name] = value.strip()
        records.append(record)

    return records


def detect_key_field(record: Mapping[str, str] | None) -> str | None:
    """Return the field name that most likely holds the SKU, if any.

    Exact alias matches win over the loose pattern. Within each pass the first
    field in the record's own order is returned, so a feed carrying both
    `SKU` and `PRODUCT CODE` resolves to whichever column comes first.
    """

    if not record:
        return None

    for name in record:
        if name.upper() in SKU_FIELD_ALIASES:
            return name

    for name in record:
        if _SKU_FIELD_PATTERN.search(name):
            return name

    return None
