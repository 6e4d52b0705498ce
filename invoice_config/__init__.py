"""
invoice_config -- single public entrypoint for rate configuration.

Responsibility:
    Provides the ONLY way to obtain VAT and retention rates at runtime
    through ``get_active_rates()``.  No other component reads configuration
    files or environment variables.  Engines receive the returned
    ``RateConfig`` as an explicit parameter.

Architecture position:
    Configuration -- YAML-driven rate sets under ``invoice_config/sets/``.
    Sits beside ``invoice_kernel``; engines import only ``RateConfig`` from
    ``invoice_config.schema``.

Invariants enforced:
    - Single entrypoint: all runtime rates flow through ``get_active_rates()``.
    - Deterministic selection: a jurisdiction-specific set beats a ``"*"``
      set, then the highest version wins.
    - Deterministic checksum: the same YAML document always yields the same
      ``RateSet.checksum``.

Failure modes:
    - ``RateConfigNotFoundError`` -- no set covers the jurisdiction/date, or
      the sets directory does not exist.
    - ``yaml.YAMLError`` / ``KeyError`` / ``ValueError`` -- malformed set file.

Audit relevance:
    Every successful call emits an ``INVOICE_CONFIG_TRACE`` log entry with the
    config id, version, checksum, scope and the rates in force, tying every
    derived invoice amount back to the rate set that produced it.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path

from invoice_config.loader import load_rate_set
from invoice_config.schema import RateConfig, RateScope, RateSet
from invoice_kernel.exceptions import RateConfigNotFoundError
from invoice_kernel.logging_config import get_logger

__all__ = [
    "RateConfig",
    "RateScope",
    "RateSet",
    "get_active_rates",
    "get_active_rate_set",
]

_logger = get_logger("config")

# Default rate sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"


def get_active_rate_set(
    jurisdiction: str,
    as_of_date: date,
    config_dir: Path | None = None,
) -> RateSet:
    """Select and return the full ``RateSet`` in force for a scope and date.

    Args:
        jurisdiction: Jurisdiction code for scope matching (e.g. ``"SA"``).
        as_of_date: Date for effective window filtering.
        config_dir: Override path to the rate sets directory.
            Defaults to invoice_config/sets/.

    Raises:
        RateConfigNotFoundError: If no set matches.
    """
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR
    rate_set = _find_matching_set(sets_dir, jurisdiction, as_of_date)

    _logger.info(
        "INVOICE_CONFIG_TRACE",
        extra={
            "trace_type": "INVOICE_CONFIG_TRACE",
            "config_set_id": rate_set.config_id,
            "config_set_version": rate_set.version,
            "checksum": rate_set.checksum,
            "scope_jurisdiction": rate_set.scope.jurisdiction,
            "scope_currency": rate_set.scope.currency,
            "requested_jurisdiction": jurisdiction,
            "as_of_date": as_of_date.isoformat(),
            "vat_rate": str(rate_set.rates.vat_rate),
            "retention_rate": str(rate_set.rates.retention_rate),
        },
    )
    return rate_set


def get_active_rates(
    jurisdiction: str,
    as_of_date: date,
    config_dir: Path | None = None,
) -> RateConfig:
    """The public rate entrypoint; returns the ``RateConfig`` engines consume.

    Non-goals:
        Does NOT cache across calls; callers hold the returned config for
        the duration of a computation batch.
    """
    return get_active_rate_set(jurisdiction, as_of_date, config_dir).rates


def _find_matching_set(sets_dir: Path, jurisdiction: str, as_of_date: date) -> RateSet:
    """Scan ``*.yaml`` files in *sets_dir* and pick the best covering set."""
    if not sets_dir.is_dir():
        raise RateConfigNotFoundError(jurisdiction, as_of_date.isoformat())

    candidates: list[RateSet] = []
    for path in sorted(sets_dir.glob("*.yaml")):
        rate_set = load_rate_set(path)
        if rate_set.scope.covers(jurisdiction, as_of_date):
            candidates.append(rate_set)

    if not candidates:
        raise RateConfigNotFoundError(jurisdiction, as_of_date.isoformat())

    # Exact jurisdiction first, then highest version
    return max(
        candidates,
        key=lambda s: (s.scope.jurisdiction == jurisdiction, s.version),
    )
