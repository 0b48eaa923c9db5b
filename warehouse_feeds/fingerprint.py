"""Heuristic content fingerprints used to skip rebuilds of unchanged feeds.

Fingerprints are a 32-bit rolling hash, not a cryptographic digest. Two
different feeds can collide; that risk is accepted in exchange for a single
linear pass per feed.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping

from .models import FeedFingerprints

_UINT32_MASK = 0xFFFFFFFF
_INT32_SIGN = 0x80000000


def _to_int32(value: int) -> int:
    """Wrap an integer into signed 32-bit range."""

    value &= _UINT32_MASK
    return value - (1 << 32) if value & _INT32_SIGN else value


def rolling_hash(text: str) -> int:
    """Return `acc * 31 + ord(ch)` folded over `text` with 32-bit wraparound."""

    acc = 0
    for char in text:
        acc = (acc * 31 + ord(char)) & _UINT32_MASK
    return _to_int32(acc)


def canonical_rows(rows: Iterable[Mapping[str, str]]) -> str:
    """Serialize rows with each row's fields sorted by name.

    Field order inside a row does not matter. Row order does: the same rows
    in a different order serialize differently.
    """

    return json.dumps(
        [sorted(row.items()) for row in rows],
        ensure_ascii=False,
        separators=(",", ":"),
    )


def fingerprint(rows: Iterable[Mapping[str, str]]) -> str:
    """Return the fingerprint of one feed's parsed rows."""

    return str(rolling_hash(canonical_rows(rows)))


def fingerprint_feeds(
    layout_rows: Iterable[Mapping[str, str]],
    inventory_rows: Iterable[Mapping[str, str]],
) -> FeedFingerprints:
    """Fingerprint both feeds at once."""

    return FeedFingerprints(layout=fingerprint(layout_rows), inventory=fingerprint(inventory_rows))
