"""
invoice_config.loader -- YAML parsing helpers for rate sets.

Responsibility:
    Read one YAML rate-set file and convert it into a frozen ``RateSet``,
    stamping it with a deterministic checksum of the raw document.

Architecture position:
    Configuration layer, internal.  Only ``invoice_config.get_active_rates``
    calls into this module at runtime.

Invariants enforced:
    * Rates are read from their YAML string form into ``Decimal``; quoting
      them in YAML avoids any float round trip.
    * ``compute_checksum`` produces a deterministic SHA-256 hash for
      identical input documents.

Failure modes:
    * Missing keys      -> ``KeyError`` propagates.
    * Malformed YAML    -> ``yaml.YAMLError`` propagates.
    * Invalid dates     -> ``ValueError`` from ``parse_date``.
    * Negative rates    -> ``NegativeAmountError`` from ``RateConfig``.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date
from pathlib import Path
from typing import Any

import yaml

from invoice_config.schema import (
    DEFAULT_RETENTION_RATE,
    DEFAULT_VAT_RATE,
    RateConfig,
    RateScope,
    RateSet,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_date(value: Any) -> date:
    """Parse a date from YAML (string or date object)."""
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise ValueError(f"Cannot parse date from {value!r}")


def parse_scope(data: dict[str, Any]) -> RateScope:
    """Parse a RateScope from a dict."""
    return RateScope(
        jurisdiction=data["jurisdiction"],
        currency=data.get("currency", ""),
        effective_from=parse_date(data["effective_from"]),
        effective_to=parse_date(data["effective_to"]) if data.get("effective_to") else None,
    )


def parse_rates(data: dict[str, Any]) -> RateConfig:
    """Parse a RateConfig; absent rates fall back to the defaults."""
    return RateConfig(
        vat_rate=str(data.get("vat_rate", DEFAULT_VAT_RATE)),
        retention_rate=str(data.get("retention_rate", DEFAULT_RETENTION_RATE)),
    )


def parse_rate_set(data: dict[str, Any]) -> RateSet:
    """Parse a full rate-set document."""
    return RateSet(
        config_id=data["config_id"],
        version=int(data.get("version", 1)),
        scope=parse_scope(data["scope"]),
        rates=parse_rates(data.get("rates") or {}),
        description=data.get("description", ""),
        checksum=compute_checksum(data),
    )


def load_rate_set(path: Path) -> RateSet:
    return parse_rate_set(load_yaml_file(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Postconditions:
        - Returns a hex-encoded SHA-256 hash string.
        - Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
