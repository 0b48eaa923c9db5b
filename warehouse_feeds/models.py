"""Core typed models shared by the parser, indexer, and coordinator."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TypeAlias, TypedDict

Record: TypeAlias = dict[str, str]
SkuIndex: TypeAlias = Mapping[str, tuple[str, ...]]

EMPTY_SKU_INDEX: SkuIndex = MappingProxyType({})


@dataclass(frozen=True, slots=True)
class DataIssue:
    """Structured data-quality issue emitted while interpreting feed rows."""

    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True, slots=True)
class SlotGeometry:
    """Parsed box geometry for one layout row.

    `x`/`y` are floor-plane coordinates and `z` is elevation, all measured at
    the box's minimum corner.
    """

    location: str
    x: float
    y: float
    z: float
    width: float
    depth: float
    height: float
    issues: tuple[DataIssue, ...] = ()

    @property
    def has_issues(self) -> bool:
        """Return whether any geometry field had to be defaulted."""

        return bool(self.issues)


@dataclass(frozen=True, slots=True)
class DataModel:
    """Reconciled view of the layout and inventory feeds.

    Instances are replaced wholesale on every accepted ingest and are never
    mutated field by field.
    """

    layout: tuple[Record, ...] = ()
    inventory_by_location: Mapping[str, Record] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def is_empty(self) -> bool:
        """Return whether no feed content has been accepted yet."""

        return not self.layout and not self.inventory_by_location


@dataclass(frozen=True, slots=True)
class FeedFingerprints:
    """Fingerprint pair recorded for the last accepted ingest."""

    layout: str = ""
    inventory: str = ""

    def differs_from(self, other: FeedFingerprints) -> bool:
        """Return True when either feed fingerprint differs from `other`."""

        return self.layout != other.layout or self.inventory != other.inventory


@dataclass(frozen=True, slots=True)
class FeedSnapshot:
    """Model, SKU index, and fingerprints that are always swapped together."""

    model: DataModel = field(default_factory=DataModel)
    sku_index: SkuIndex = field(default_factory=lambda: EMPTY_SKU_INDEX)
    fingerprints: FeedFingerprints = field(default_factory=FeedFingerprints)


class IngestResult(TypedDict):
    """Outcome of one fetch and reconcile cycle."""

    changed: bool
    layout_fingerprint: str
    inventory_fingerprint: str
    error: str | None


class SlotDetails(TypedDict):
    """Read-only summary of what occupies one location."""

    location: str
    sku: str
    quantity: str
    record: Record
