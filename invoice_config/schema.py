"""
invoice_config.schema -- Frozen dataclass definitions for rate configuration.

Responsibility:
    Define the typed, immutable shapes that YAML rate sets are parsed into.
    ``RateConfig`` is the only configuration object engines accept.

Architecture position:
    Configuration layer.  Imported by the loader and by engines as a plain
    parameter type.  Contains no I/O.

Invariants enforced:
    - All dataclasses are ``frozen=True``.
    - Rates are exact ``Decimal`` values and never negative.
    - A scope's ``effective_to`` is never earlier than ``effective_from``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from invoice_kernel.domain.amounts import to_decimal
from invoice_kernel.exceptions import NegativeAmountError

DEFAULT_VAT_RATE = Decimal("0.15")
DEFAULT_RETENTION_RATE = Decimal("0.10")


@dataclass(frozen=True)
class RateConfig:
    """VAT and retention rates applied when deriving invoice amounts.

    Rates are fractions: ``0.15`` is 15%.
    """

    vat_rate: Decimal = DEFAULT_VAT_RATE
    retention_rate: Decimal = DEFAULT_RETENTION_RATE

    def __post_init__(self) -> None:
        for attr in ("vat_rate", "retention_rate"):
            rate = to_decimal(getattr(self, attr), attr)
            if rate < 0:
                raise NegativeAmountError(attr, str(rate))
            object.__setattr__(self, attr, rate)


@dataclass(frozen=True)
class RateScope:
    """Where and when a rate set applies."""

    jurisdiction: str
    currency: str
    effective_from: date
    effective_to: date | None = None

    def __post_init__(self) -> None:
        if self.effective_to is not None and self.effective_to < self.effective_from:
            raise ValueError(
                f"effective_to {self.effective_to} precedes "
                f"effective_from {self.effective_from}"
            )

    def covers(self, jurisdiction: str, as_of_date: date) -> bool:
        """True when the scope matches the jurisdiction ("*" matches any) and date."""
        if self.jurisdiction not in (jurisdiction, "*"):
            return False
        if as_of_date < self.effective_from:
            return False
        return self.effective_to is None or as_of_date <= self.effective_to


@dataclass(frozen=True)
class RateSet:
    """A versioned, scoped rate configuration loaded from one YAML file."""

    config_id: str
    version: int
    scope: RateScope
    rates: RateConfig = field(default_factory=RateConfig)
    description: str = ""
    checksum: str = ""
