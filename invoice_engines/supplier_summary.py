"""
Supplier Summary - Purchase-order exposure per supplier.

Groups purchase orders by supplier and sums their local-currency values for
the supplier dashboard: per-supplier totals, PO detail rows, grand totals and
a top-N ranking.  Pure functions with no I/O; currency conversion has already
happened upstream.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from invoice_engines.tracer import traced_engine
from invoice_kernel.domain.amounts import ZERO, sum_amounts
from invoice_kernel.domain.models import PurchaseOrder, Supplier, identifier_sort_key
from invoice_kernel.logging_config import get_logger

logger = get_logger("engines.supplier_summary")

DEFAULT_TOP_LIMIT = 10


@dataclass(frozen=True)
class SupplierPosition:
    """One supplier with its purchase orders and their local-currency totals."""

    supplier: Supplier
    purchase_orders: tuple[PurchaseOrder, ...]
    local_value: Decimal
    local_value_with_vat: Decimal

    @property
    def po_count(self) -> int:
        return len(self.purchase_orders)

    @property
    def po_numbers(self) -> tuple[str, ...]:
        return tuple(po.po_number for po in self.purchase_orders)


@dataclass(frozen=True)
class SupplierPortfolio:
    """All suppliers holding at least one purchase order, ordered by name."""

    positions: tuple[SupplierPosition, ...] = ()
    total_local_value: Decimal = ZERO
    total_local_value_with_vat: Decimal = ZERO
    skipped_po_numbers: tuple[str, ...] = ()

    @property
    def supplier_count(self) -> int:
        return len(self.positions)

    @property
    def po_count(self) -> int:
        return sum(p.po_count for p in self.positions)


@traced_engine("supplier_summary", "1.0", fingerprint_fields=("suppliers", "purchase_orders"))
def summarize_suppliers(
    suppliers: Iterable[Supplier],
    purchase_orders: Iterable[PurchaseOrder],
) -> SupplierPortfolio:
    """
    Build per-supplier totals.

    Suppliers without purchase orders are omitted.  Purchase orders naming
    an unknown supplier are skipped and reported in ``skipped_po_numbers``.
    """
    known = {str(s.supplier_id): s for s in suppliers}
    grouped: dict[str, list[PurchaseOrder]] = {}
    skipped: list[str] = []

    for po in purchase_orders:
        key = str(po.supplier_id)
        if key not in known:
            skipped.append(po.po_number)
            continue
        grouped.setdefault(key, []).append(po)

    if skipped:
        logger.warning("purchase_orders_skipped", extra={
            "reason": "unknown_supplier",
            "po_numbers": skipped,
        })

    positions = tuple(sorted(
        (
            SupplierPosition(
                supplier=known[key],
                purchase_orders=tuple(pos),
                local_value=sum_amounts(po.local_value for po in pos),
                local_value_with_vat=sum_amounts(po.local_value_with_vat for po in pos),
            )
            for key, pos in grouped.items()
        ),
        key=lambda p: (p.supplier.name.casefold(), identifier_sort_key(p.supplier.supplier_id)),
    ))

    portfolio = SupplierPortfolio(
        positions=positions,
        total_local_value=sum_amounts(p.local_value for p in positions),
        total_local_value_with_vat=sum_amounts(p.local_value_with_vat for p in positions),
        skipped_po_numbers=tuple(skipped),
    )

    logger.info("suppliers_summarized", extra={
        "supplier_count": portfolio.supplier_count,
        "po_count": portfolio.po_count,
        "total_local_value": str(portfolio.total_local_value),
        "total_local_value_with_vat": str(portfolio.total_local_value_with_vat),
    })
    return portfolio


def top_suppliers(
    portfolio: SupplierPortfolio,
    limit: int = DEFAULT_TOP_LIMIT,
) -> tuple[SupplierPosition, ...]:
    """Largest suppliers by local value; ties broken by name."""
    if limit < 0:
        raise ValueError(f"limit must be non-negative, got {limit}")
    ranked = sorted(
        portfolio.positions,
        key=lambda p: (-p.local_value, p.supplier.name.casefold()),
    )
    return tuple(ranked[:limit])
