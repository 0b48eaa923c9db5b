"""Resolve free-text queries into matching storage locations."""

from __future__ import annotations

from .models import DataModel, SkuIndex
from .normalize import normalize_location


def normalize_query(query: str | None) -> str:
    """Trim and case-fold a query; None becomes the empty string."""

    if query is None:
        return ""
    return query.strip().casefold()


def _sku_matches(needle: str, sku_index: SkuIndex) -> list[str]:
    """Return locations for an exact SKU key, else for every key containing it."""

    exact = sku_index.get(needle)
    if exact:
        return list(exact)

    matches: list[str] = []
    for sku, locations in sku_index.items():
        if needle in sku:
            matches.extend(locations)
    return matches


def _location_matches(needle: str, model: DataModel) -> list[str]:
    """Return layout LOCATIONs that contain the query."""

    matches: list[str] = []
    for row in model.layout:
        location = normalize_location(row.get("LOCATION"))
        if location is not None and needle in location.casefold():
            matches.append(location)
    return matches


def resolve(query: str | None, model: DataModel, sku_index: SkuIndex) -> set[str]:
    """Return every location matching `query` by SKU or by LOCATION text.

    An empty query yields an empty set, which callers treat as "clear any
    highlighting". A feed without a recognizable SKU column simply leaves the
    SKU index empty, so only location matching applies.
    """

    needle = normalize_query(query)
    if not needle:
        return set()

    return set(_sku_matches(needle, sku_index)) | set(_location_matches(needle, model))
