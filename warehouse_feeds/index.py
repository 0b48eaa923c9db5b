"""Builders for the location-keyed inventory map and the SKU inverted index."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from .models import DataModel, Record, SkuIndex
from .normalize import normalize_location, normalize_sku
from .parser import detect_key_field


def build_inventory_index(rows: Iterable[Mapping[str, str]]) -> dict[str, Record]:
    """Map trimmed LOCATION to its inventory row.

    Rows without a LOCATION are dropped. When a LOCATION repeats, the row that
    appears later in the feed wins.
    """

    by_location: dict[str, Record] = {}
    for row in rows:
        location = normalize_location(row.get("LOCATION"))
        if location is None:
            continue
        by_location[location] = dict(row)
    return by_location


def build_sku_index(rows: Iterable[Mapping[str, str]]) -> dict[str, tuple[str, ...]]:
    """Build the inverted index from normalized SKU to locations.

    The key field is detected per row. Entries keep feed order and are not
    deduplicated, so two rows with the same SKU and LOCATION list it twice.
    """

    locations_by_sku: defaultdict[str, list[str]] = defaultdict(list)
    for row in rows:
        location = normalize_location(row.get("LOCATION"))
        if location is None:
            continue

        key_field = detect_key_field(row)
        if key_field is None:
            continue

        sku = normalize_sku(row.get(key_field))
        if sku is None:
            continue
        locations_by_sku[sku].append(location)

    return {sku: tuple(locations) for sku, locations in locations_by_sku.items()}


def build_model(
    layout_rows: Iterable[Mapping[str, str]],
    inventory_rows: Iterable[Mapping[str, str]],
) -> tuple[DataModel, SkuIndex]:
    """Build a fresh model and SKU index from parsed feed rows.

    Both structures come from the same inventory rows and are returned as
    read-only views so they can be published together.
    """

    inventory = list(inventory_rows)
    model = DataModel(
        layout=tuple(dict(row) for row in layout_rows),
        inventory_by_location=MappingProxyType(build_inventory_index(inventory)),
    )
    return model, MappingProxyType(build_sku_index(inventory))
