"""Configuration loaded from environment variables and an optional `.env` file."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_POLL_SECONDS = 0.0
DEFAULT_HTTP_TIMEOUT = 15.0
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True, slots=True)
class FeedConfig:
    """Where the two feeds live and how often to poll them."""

    layout_url: str
    inventory_url: str
    poll_seconds: float = DEFAULT_POLL_SECONDS
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def polling_enabled(self) -> bool:
        """Return whether the refresh loop should run at all."""

        return self.poll_seconds > 0


def _float_setting(env: Mapping[str, str], name: str, default: float) -> float:
    """Read a non-negative float setting, failing fast on bad values."""

    raw = env.get(name, "").strip()
    if raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got: {raw}") from None
    if value < 0:
        raise ValueError(f"{name} must not be negative, got: {raw}")
    return value


def load_config(
    env: Mapping[str, str] | None = None,
    *,
    layout_url: str | None = None,
    inventory_url: str | None = None,
    poll_seconds: float | None = None,
) -> FeedConfig:
    """Build a `FeedConfig`; explicit arguments override environment values.

    When `env` is None the process environment is used after loading `.env`.
    """

    if env is None:
        load_dotenv()
        env = os.environ

    resolved_layout = (layout_url or env.get("WAREHOUSE_LAYOUT_URL", "")).strip()
    resolved_inventory = (inventory_url or env.get("WAREHOUSE_INVENTORY_URL", "")).strip()
    if not resolved_layout:
        raise ValueError("Layout feed URL is not configured (WAREHOUSE_LAYOUT_URL)")
    if not resolved_inventory:
        raise ValueError("Inventory feed URL is not configured (WAREHOUSE_INVENTORY_URL)")

    if poll_seconds is None:
        poll_seconds = _float_setting(env, "WAREHOUSE_POLL_SECONDS", DEFAULT_POLL_SECONDS)
    elif poll_seconds < 0:
        raise ValueError(f"poll_seconds must not be negative, got: {poll_seconds}")

    log_level = env.get("LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper() or DEFAULT_LOG_LEVEL
    if not isinstance(logging.getLevelName(log_level), int):
        raise ValueError(f"LOG_LEVEL is not a logging level name, got: {log_level}")

    return FeedConfig(
        layout_url=resolved_layout,
        inventory_url=resolved_inventory,
        poll_seconds=poll_seconds,
        http_timeout=_float_setting(env, "WAREHOUSE_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT),
        log_level=log_level,
    )
