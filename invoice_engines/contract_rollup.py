"""
Contract Rollup - Per-contract billing and collection totals.

Sums the partial invoices raised against one awarded contract (MOC) into
submitted, received, per-status and outstanding figures.  Pure function over
an explicit snapshot: stored vat/retention/payable are summed as-is and
never re-derived.

Usage:
    from invoice_engines.contract_rollup import rollup_contract

    rollup = rollup_contract(contract, invoices)
    print(rollup.balance_outstanding)
    print(rollup.total_under_status[InvoiceStatus.PMT])
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal

from invoice_config.schema import DEFAULT_VAT_RATE
from invoice_engines.derivation import with_vat
from invoice_engines.tracer import traced_engine
from invoice_kernel.domain.amounts import ZERO, AmountLike, percentage, sum_amounts
from invoice_kernel.domain.models import (
    Contract,
    Identifier,
    Invoice,
    InvoiceStatus,
    identifier_sort_key,
)
from invoice_kernel.logging_config import LogContext, get_logger

logger = get_logger("engines.contract_rollup")


def _zero_by_status() -> dict[InvoiceStatus, Decimal]:
    return {s: ZERO for s in InvoiceStatus}


@dataclass(frozen=True)
class ContractRollup:
    """
    Aggregated billing state of one contract.

    ``total_under_status`` always carries all four statuses; amounts there
    are VAT-inclusive (``amount + vat``).  ``total_received`` is net of
    retention.
    """

    contract: Contract
    total_submitted: Decimal = ZERO
    total_submitted_with_vat: Decimal = ZERO
    total_received: Decimal = ZERO
    total_under_status: dict[InvoiceStatus, Decimal] = field(default_factory=_zero_by_status)
    contract_value_with_vat: Decimal = ZERO
    balance_outstanding: Decimal = ZERO
    submitted_percentage: Decimal = ZERO
    total_vat: Decimal = ZERO
    total_retention: Decimal = ZERO
    total_payable: Decimal = ZERO
    retention_held: Decimal = ZERO
    invoice_count: int = 0
    rows: tuple[Invoice, ...] = ()
    skipped_invoice_ids: tuple[Identifier, ...] = ()

    @property
    def contract_id(self) -> Identifier:
        return self.contract.contract_id

    @property
    def is_fully_collected(self) -> bool:
        """True when collections cover the VAT-inclusive contract value."""
        return self.balance_outstanding <= 0


def _row_key(invoice: Invoice) -> tuple:
    return (invoice.invoice_date, identifier_sort_key(invoice.invoice_id))


@traced_engine("contract_rollup", "1.0", fingerprint_fields=("contract", "invoices"))
def rollup_contract(
    contract: Contract,
    invoices: Iterable[Invoice],
    vat_rate: AmountLike = DEFAULT_VAT_RATE,
) -> ContractRollup:
    """
    Roll up the invoices of ``contract``.

    Invoices whose ``contract_id`` does not match the contract are skipped
    and reported in ``skipped_invoice_ids``; they never abort the rollup.

    Postconditions:
        - ``balance_outstanding == contract_value_with_vat - total_received``.
        - ``sum(total_under_status.values()) == total_submitted_with_vat``.
        - ``rows`` are ordered by (invoice_date, invoice_id).
    """
    with LogContext.bind(contract_id=str(contract.contract_id)):
        t0 = time.monotonic()

        matched: list[Invoice] = []
        skipped: list[Identifier] = []
        for invoice in invoices:
            if str(invoice.contract_id) == str(contract.contract_id):
                matched.append(invoice)
            else:
                skipped.append(invoice.invoice_id)

        if skipped:
            logger.warning("rollup_invoices_skipped", extra={
                "skipped_invoice_ids": [str(i) for i in skipped],
            })

        by_status = _zero_by_status()
        for invoice in matched:
            by_status[invoice.status] += invoice.amount_with_vat

        paid = [i for i in matched if i.is_paid]
        total_submitted = sum_amounts(i.amount for i in matched)
        total_received = sum_amounts(i.amount + i.vat - i.retention for i in paid)
        value_with_vat = with_vat(contract.contract_value, vat_rate)

        rollup = ContractRollup(
            contract=contract,
            total_submitted=total_submitted,
            total_submitted_with_vat=sum_amounts(i.amount_with_vat for i in matched),
            total_received=total_received,
            total_under_status=by_status,
            contract_value_with_vat=value_with_vat,
            balance_outstanding=value_with_vat - total_received,
            submitted_percentage=percentage(total_submitted, contract.contract_value),
            total_vat=sum_amounts(i.vat for i in matched),
            total_retention=sum_amounts(i.retention for i in matched),
            total_payable=sum_amounts(i.payable for i in matched),
            retention_held=sum_amounts(i.retention for i in paid),
            invoice_count=len(matched),
            rows=tuple(sorted(matched, key=_row_key)),
            skipped_invoice_ids=tuple(skipped),
        )

        duration_ms = round((time.monotonic() - t0) * 1000, 2)
        logger.info("contract_rollup_completed", extra={
            "contract_number": contract.contract_number,
            "invoice_count": rollup.invoice_count,
            "total_submitted": str(rollup.total_submitted),
            "total_received": str(rollup.total_received),
            "balance_outstanding": str(rollup.balance_outstanding),
            "submitted_percentage": str(rollup.submitted_percentage),
            "duration_ms": duration_ms,
        })

        return rollup
