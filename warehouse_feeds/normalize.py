"""Field-level normalization helpers used by indexing and the slot scene."""

from __future__ import annotations

import math
import re
from collections.abc import Mapping

from .models import DataIssue, SlotGeometry

DEFAULT_WIDTH = 0.5
DEFAULT_DEPTH = 0.5
DEFAULT_HEIGHT = 0.4

# Leading numeric prefix, the same text a browser's parseFloat would accept.
_NUMBER_PREFIX_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def normalize_location(value: str | None) -> str | None:
    """Trim a LOCATION value, collapsing blanks to None."""

    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def normalize_sku(value: str | None) -> str | None:
    """Return the search key for a SKU value (trimmed and case-folded)."""

    if value is None:
        return None
    normalized = value.strip().casefold()
    return normalized or None


def parse_number(value: str | None) -> float | None:
    """Parse the leading numeric prefix of a value, or None when there is none.

    `"2.5m"` parses to `2.5`; `"abc"`, `""` and `None` give None.
    """

    if value is None:
        return None
    match = _NUMBER_PREFIX_RE.match(value.strip())
    if match is None:
        return None
    parsed = float(match.group(0))
    if not math.isfinite(parsed):
        return None
    return parsed


def _coordinate(row: Mapping[str, str], field: str) -> tuple[float, list[DataIssue]]:
    """Parse a position field, defaulting to 0 when missing or unparsable."""

    raw = row.get(field)
    parsed = parse_number(raw)
    if parsed is not None:
        return parsed, []

    if raw is None or raw.strip() == "":
        message = f"{field} is missing; using 0"
    else:
        message = f"{field} is not numeric: {raw}; using 0"
    return 0.0, [DataIssue(code="coordinate_defaulted", message=message, field=field)]


def _dimension(row: Mapping[str, str], field: str, default: float) -> tuple[float, list[DataIssue]]:
    """Parse a size field, defaulting so the resulting box is never degenerate."""

    raw = row.get(field)
    parsed = parse_number(raw)
    if parsed is not None and parsed > 0:
        return parsed, []

    if raw is None or raw.strip() == "":
        message = f"{field} is missing; using {default}"
    elif parsed is None:
        message = f"{field} is not numeric: {raw}; using {default}"
    else:
        message = f"{field} is not positive: {raw}; using {default}"
    return default, [DataIssue(code="dimension_defaulted", message=message, field=field)]


def layout_geometry(row: Mapping[str, str]) -> SlotGeometry:
    """Interpret one layout row as a box, recording every defaulted field."""

    issues: list[DataIssue] = []

    x, x_issues = _coordinate(row, "X")
    y, y_issues = _coordinate(row, "Y")
    z, z_issues = _coordinate(row, "Z")
    width, width_issues = _dimension(row, "WIDTH", DEFAULT_WIDTH)
    depth, depth_issues = _dimension(row, "DEPTH", DEFAULT_DEPTH)
    height, height_issues = _dimension(row, "HEIGHT", DEFAULT_HEIGHT)

    issues.extend(x_issues)
    issues.extend(y_issues)
    issues.extend(z_issues)
    issues.extend(width_issues)
    issues.extend(depth_issues)
    issues.extend(height_issues)

    location = normalize_location(row.get("LOCATION"))
    if location is None:
        issues.append(
            DataIssue(
                code="missing_location",
                message="Layout row has no LOCATION; it has no inventory association",
                field="LOCATION",
            )
        )

    return SlotGeometry(
        location=location or "",
        x=x,
        y=y,
        z=z,
        width=width,
        depth=depth,
        height=height,
        issues=tuple(issues),
    )
