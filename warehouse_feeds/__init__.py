"""Public API exports for the warehouse feed parser, indexes, and coordinator."""

from .config import FeedConfig, load_config
from .coordinator import FeedCoordinator
from .fingerprint import fingerprint, fingerprint_feeds, rolling_hash
from .index import build_inventory_index, build_model, build_sku_index
from .models import (
    DataIssue,
    DataModel,
    FeedFingerprints,
    FeedSnapshot,
    IngestResult,
    Record,
    SkuIndex,
    SlotDetails,
    SlotGeometry,
)
from .parser import detect_key_field, parse_csv
from .refresh import RefreshLoop
from .scene import SlotScene
from .search import resolve
from .transport import FeedFetchError, fetch_text, load_feed

__all__ = [
    "DataIssue",
    "DataModel",
    "FeedConfig",
    "FeedCoordinator",
    "FeedFetchError",
    "FeedFingerprints",
    "FeedSnapshot",
    "IngestResult",
    "Record",
    "RefreshLoop",
    "SkuIndex",
    "SlotDetails",
    "SlotGeometry",
    "SlotScene",
    "build_inventory_index",
    "build_model",
    "build_sku_index",
    "detect_key_field",
    "fetch_text",
    "fingerprint",
    "fingerprint_feeds",
    "load_config",
    "load_feed",
    "parse_csv",
    "resolve",
    "rolling_hash",
]
