"""
Supplier Ledger - Running-balance statement of account for one supplier.

Converts a supplier's VAT-inclusive purchase-order value plus its certified
invoices into a chronological statement: an opening row crediting the PO
value, then one debit row per certified invoice with a running balance.

Pure functions with no I/O.  Negative running balances are reported, not
rejected: over-certification is for the caller to act on.

Usage:
    from decimal import Decimal
    from invoice_engines.supplier_ledger import build_statement

    statement = build_statement(Decimal("100000.00"), records)
    for row in statement.rows:
        print(row.description, row.debit, row.running_balance)
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from invoice_engines.tracer import traced_engine
from invoice_kernel.domain.amounts import ZERO, AmountLike, sum_amounts, to_amount
from invoice_kernel.domain.models import CertifiedInvoiceRecord, Identifier, PurchaseOrder
from invoice_kernel.logging_config import LogContext, get_logger

logger = get_logger("engines.supplier_ledger")

OPENING_BALANCE_DESCRIPTION = "Opening Balance"


@dataclass(frozen=True)
class StatementRow:
    """
    One line of a statement of account.

    The opening row has ``record`` set to None and carries the PO value as
    ``credit``; every other row debits one certified invoice.
    """

    description: str
    credit: Decimal
    debit: Decimal
    running_balance: Decimal
    record: CertifiedInvoiceRecord | None = None

    @property
    def is_opening(self) -> bool:
        return self.record is None


@dataclass(frozen=True)
class SupplierStatement:
    """A complete statement of account; ``rows[0]`` is always the opening row."""

    supplier_name: str
    opening_balance: Decimal
    rows: tuple[StatementRow, ...]
    total_po_value: Decimal
    total_certified: Decimal
    balance_remaining: Decimal
    distinct_po_numbers: tuple[str, ...] = ()
    start_date: date | None = None
    end_date: date | None = None

    @property
    def is_over_certified(self) -> bool:
        """True when certified invoices exceed the PO value."""
        return self.balance_remaining < 0

    @property
    def entries(self) -> tuple[StatementRow, ...]:
        """Rows excluding the opening balance."""
        return self.rows[1:]


def opening_balance_from_purchase_orders(purchase_orders: Iterable[PurchaseOrder]) -> Decimal:
    """Aggregate VAT-inclusive local value of a supplier's purchase orders."""
    return sum_amounts(po.local_value_with_vat for po in purchase_orders)


def _in_window(record: CertifiedInvoiceRecord, start: date | None, end: date | None) -> bool:
    if start is not None and record.certified_date < start:
        return False
    if end is not None and record.certified_date > end:
        return False
    return True


def _distinct(values: Iterable[str]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for value in values:
        if value and value not in seen:
            seen[value] = None
    return tuple(seen)


@traced_engine(
    "supplier_ledger",
    "1.0",
    fingerprint_fields=("opening_balance", "records", "start_date", "end_date"),
)
def build_statement(
    opening_balance: AmountLike,
    records: Iterable[CertifiedInvoiceRecord],
    supplier_name: str = "",
    start_date: date | None = None,
    end_date: date | None = None,
    supplier_id: Identifier | None = None,
) -> SupplierStatement:
    """
    Build the running-balance statement.

    Records are ordered by (certified_date, invoice_number); the sort is
    stable so exact ties keep their input order.  ``start_date`` and
    ``end_date`` bound the certified date inclusively.  When ``supplier_id``
    is given it is bound into ``LogContext`` for every record logged here.

    Postconditions:
        - ``len(rows) == 1 + number of records in the window``.
        - ``balance_remaining == opening_balance - total_certified``.
        - ``distinct_po_numbers`` keeps first-seen input order.
    """
    supplier_key = str(supplier_id) if supplier_id is not None else None
    with LogContext.bind(supplier_id=supplier_key):
        t0 = time.monotonic()
        opening = to_amount(opening_balance, "opening_balance")

        selected = [r for r in records if _in_window(r, start_date, end_date)]
        ordered = sorted(selected, key=lambda r: (r.certified_date, r.invoice_number))

        rows = [StatementRow(
            description=OPENING_BALANCE_DESCRIPTION,
            credit=opening,
            debit=ZERO,
            running_balance=opening,
        )]
        running = opening
        for record in ordered:
            running = running - record.payable
            rows.append(StatementRow(
                description=record.invoice_number,
                credit=ZERO,
                debit=record.payable,
                running_balance=running,
                record=record,
            ))

        total_certified = sum_amounts(r.payable for r in ordered)
        statement = SupplierStatement(
            supplier_name=supplier_name,
            opening_balance=opening,
            rows=tuple(rows),
            total_po_value=opening,
            total_certified=total_certified,
            balance_remaining=running,
            distinct_po_numbers=_distinct(r.po_number for r in selected),
            start_date=start_date,
            end_date=end_date,
        )

        if statement.is_over_certified:
            logger.warning("supplier_over_certified", extra={
                "supplier_name": supplier_name,
                "total_po_value": str(opening),
                "total_certified": str(total_certified),
                "balance_remaining": str(running),
            })

        duration_ms = round((time.monotonic() - t0) * 1000, 2)
        logger.info("supplier_statement_built", extra={
            "supplier_name": supplier_name,
            "record_count": len(ordered),
            "total_po_value": str(opening),
            "total_certified": str(total_certified),
            "balance_remaining": str(running),
            "duration_ms": duration_ms,
        })

        return statement
