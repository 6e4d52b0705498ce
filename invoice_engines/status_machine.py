"""
invoice_engines.status_machine -- Custody state machine for partial invoices.

Responsibility:
    Apply status changes and amount edits to an ``Invoice`` snapshot,
    returning a new snapshot.  The allowed moves are declared as an
    ``INVOICE_WORKFLOW`` of kernel ``Transition`` objects; the receipt-date
    rule is the ``receipt_date_required`` guard on every transition into
    PAID.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Invoice stores call these
    functions at the write boundary and persist the returned snapshot.

Invariants enforced:
    - Any state may move to any state, including itself.
    - Entering PAID requires a receipt date; leaving PAID (or entering any
      non-PAID state) clears it regardless of the date argument.
    - Payable is always recomputed through ``derivation.payable_of`` when
      amounts change, so ``payable == amount + vat - retention`` holds.
    - Idempotent: applying the same status and receipt date twice yields
      an equal invoice.

Failure modes:
    - ``ReceiptDateRequiredError`` when entering PAID without a date.
    - ``InvalidInvoiceStatusError`` for an unknown status string.
    - ``NegativeAmountError`` / ``InvalidAmountError`` for bad amount edits.
"""

from __future__ import annotations

import dataclasses
from datetime import date
from itertools import product

from invoice_config.schema import RateConfig
from invoice_engines.derivation import derive_amounts, payable_of
from invoice_kernel.domain.amounts import AmountLike, require_non_negative
from invoice_kernel.domain.models import Identifier, Invoice, InvoiceStatus
from invoice_kernel.domain.snapshots import parse_date
from invoice_kernel.domain.workflow import Guard, Transition, Workflow
from invoice_kernel.exceptions import ReceiptDateRequiredError
from invoice_kernel.logging_config import LogContext, get_logger

logger = get_logger("engines.status_machine")

RECEIPT_DATE_REQUIRED = Guard(
    name="receipt_date_required",
    description="A receipt date must accompany every move into PAID",
)


def _transition(from_status: InvoiceStatus, to_status: InvoiceStatus) -> Transition:
    if to_status is InvoiceStatus.PAID:
        return Transition(
            from_state=from_status.value,
            to_state=to_status.value,
            action="record_collection",
            guard=RECEIPT_DATE_REQUIRED,
        )
    return Transition(
        from_state=from_status.value,
        to_state=to_status.value,
        action=f"hand_to_{to_status.value.lower()}",
        clears=("receipt_date",),
    )


INVOICE_WORKFLOW = Workflow(
    name="partial_invoice",
    description="Custody of a partial invoice between PMD, PMT, FINANCE and collection",
    initial_state=InvoiceStatus.PMD.value,
    states=tuple(s.value for s in InvoiceStatus),
    transitions=tuple(_transition(a, b) for a, b in product(InvoiceStatus, InvoiceStatus)),
)


def allowed_transitions(status: InvoiceStatus | str) -> tuple[InvoiceStatus, ...]:
    """States reachable from ``status`` in one step."""
    current = InvoiceStatus.parse(status)
    return tuple(InvoiceStatus(s) for s in INVOICE_WORKFLOW.targets_from(current.value))


def edit_amounts(
    invoice: Invoice,
    *,
    amount: AmountLike | None = None,
    vat: AmountLike | None = None,
    retention: AmountLike | None = None,
    rates: RateConfig | None = None,
) -> Invoice:
    """
    Return a copy of ``invoice`` with edited amounts and recomputed payable.

    A new ``amount`` re-derives whichever of vat/retention is not given
    explicitly; explicit overrides are rounded to 2 places and kept as-is.
    Without a new amount, omitted components keep their stored values.
    """
    if amount is None and vat is None and retention is None:
        return invoice

    with LogContext.bind(invoice_id=str(invoice.invoice_id)):
        if amount is not None:
            derived = derive_amounts(amount, rates)
            new_amount = derived.amount
            new_vat = derived.vat
            new_retention = derived.retention
        else:
            new_amount, new_vat, new_retention = invoice.amount, invoice.vat, invoice.retention

        if vat is not None:
            new_vat = require_non_negative(vat, "vat")
        if retention is not None:
            new_retention = require_non_negative(retention, "retention")

        updated = dataclasses.replace(
            invoice,
            amount=new_amount,
            vat=new_vat,
            retention=new_retention,
            payable=payable_of(new_amount, new_vat, new_retention),
        )

        logger.info("invoice_amounts_edited", extra={
            "amount": str(updated.amount),
            "vat": str(updated.vat),
            "retention": str(updated.retention),
            "payable": str(updated.payable),
            "previous_payable": str(invoice.payable),
        })
        return updated


def apply_status(
    invoice: Invoice,
    new_status: InvoiceStatus | str,
    receipt_date: date | str | None = None,
    *,
    amount: AmountLike | None = None,
    vat: AmountLike | None = None,
    retention: AmountLike | None = None,
    rates: RateConfig | None = None,
) -> Invoice:
    """
    Move ``invoice`` to ``new_status``, optionally editing amounts first.

    Raises:
        ReceiptDateRequiredError: If ``new_status`` is PAID and no receipt
            date is supplied.
        InvalidInvoiceStatusError: If ``new_status`` is not a known status.
    """
    with LogContext.bind(invoice_id=str(invoice.invoice_id)):
        target = InvoiceStatus.parse(new_status)
        when = parse_date(receipt_date)
        edited = edit_amounts(invoice, amount=amount, vat=vat, retention=retention, rates=rates)

        transition = INVOICE_WORKFLOW.transition_for(invoice.status.value, target.value)
        if transition is not None and transition.guard is RECEIPT_DATE_REQUIRED and when is None:
            logger.warning("invoice_transition_rejected", extra={
                "from_status": invoice.status.value,
                "to_status": target.value,
                "guard": RECEIPT_DATE_REQUIRED.name,
            })
            raise ReceiptDateRequiredError(invoice.invoice_id)

        updated = dataclasses.replace(
            edited,
            status=target,
            receipt_date=when if target is InvoiceStatus.PAID else None,
        )

        logger.info("invoice_status_applied", extra={
            "from_status": invoice.status.value,
            "to_status": target.value,
            "action": transition.action if transition else None,
            "receipt_date": updated.receipt_date.isoformat() if updated.receipt_date else None,
        })
        return updated


def create_invoice(
    invoice_id: Identifier,
    contract_id: Identifier,
    invoice_number: str,
    invoice_date: date | str,
    amount: AmountLike,
    rates: RateConfig | None = None,
) -> Invoice:
    """New invoice in the workflow's initial state with derived amounts."""
    with LogContext.bind(invoice_id=str(invoice_id), contract_id=str(contract_id)):
        derived = derive_amounts(amount, rates)
        issued = parse_date(invoice_date)
        if issued is None:
            raise ValueError("invoice_date is required")

        invoice = Invoice(
            invoice_id=invoice_id,
            contract_id=contract_id,
            invoice_number=invoice_number,
            invoice_date=issued,
            amount=derived.amount,
            vat=derived.vat,
            retention=derived.retention,
            payable=derived.payable,
            status=InvoiceStatus(INVOICE_WORKFLOW.initial_state),
            receipt_date=None,
        )

        logger.info("invoice_created", extra={
            "invoice_number": invoice_number,
            "amount": str(invoice.amount),
            "payable": str(invoice.payable),
        })
        return invoice
