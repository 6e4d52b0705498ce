"""
Monetary Derivation - VAT, retention and payable for a partial invoice.

Pure functions with no I/O - rates provided as a ``RateConfig`` parameter.
This is the only place in the code base where vat, retention and payable
are computed from an amount; read paths use the stored values.

Usage:
    from decimal import Decimal
    from invoice_engines.derivation import derive_amounts

    derived = derive_amounts(Decimal("13708.00"))
    print(derived.vat)        # 2056.20
    print(derived.retention)  # 1370.80
    print(derived.payable)    # 14393.40
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from invoice_config.schema import DEFAULT_VAT_RATE, RateConfig
from invoice_kernel.domain.amounts import AmountLike, require_non_negative, round2, to_decimal
from invoice_kernel.logging_config import get_logger

logger = get_logger("engines.derivation")

_ONE = Decimal("1")

__all__ = [
    "DerivedAmounts",
    "derive_amounts",
    "payable_of",
    "round2",
    "with_vat",
]


@dataclass(frozen=True)
class DerivedAmounts:
    """
    The four monetary fields of an invoice.

    Immutable value object; ``payable == amount + vat - retention`` holds
    exactly because each field is already rounded to 2 places.
    """

    amount: Decimal
    vat: Decimal
    retention: Decimal
    payable: Decimal


def derive_amounts(amount: AmountLike, rates: RateConfig | None = None) -> DerivedAmounts:
    """
    Derive vat, retention and payable from a VAT-exclusive amount.

    ``vat`` and ``retention`` are each rounded once from the exact product;
    ``payable`` is computed from the rounded components.

    Raises:
        NegativeAmountError: If ``amount`` is below zero.
        InvalidAmountError: If ``amount`` is not a finite number.
    """
    rates = rates or RateConfig()
    base = require_non_negative(amount, "amount")
    vat = round2(base * rates.vat_rate)
    retention = round2(base * rates.retention_rate)
    payable = payable_of(base, vat, retention)

    logger.debug("amounts_derived", extra={
        "amount": str(base),
        "vat": str(vat),
        "retention": str(retention),
        "payable": str(payable),
        "vat_rate": str(rates.vat_rate),
        "retention_rate": str(rates.retention_rate),
    })

    return DerivedAmounts(amount=base, vat=vat, retention=retention, payable=payable)


def with_vat(amount: AmountLike, vat_rate: AmountLike = DEFAULT_VAT_RATE) -> Decimal:
    """VAT-inclusive value: ``round2(amount * (1 + vat_rate))``."""
    return round2(to_decimal(amount) * (_ONE + to_decimal(vat_rate, "vat_rate")))


def payable_of(amount: AmountLike, vat: AmountLike, retention: AmountLike) -> Decimal:
    """Net payable from stored components: ``round2(amount + vat - retention)``."""
    return round2(
        to_decimal(amount, "amount")
        + to_decimal(vat, "vat")
        - to_decimal(retention, "retention")
    )
