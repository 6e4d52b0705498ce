"""
Invoice Domain Models (``invoice_kernel.domain.models``).

Responsibility
--------------
Frozen value objects representing the nouns of contract invoicing: awarded
contracts (MOCs), partial invoices raised against them, suppliers, their
purchase orders, and the certified supplier invoices that feed a statement
of account.

Architecture position
---------------------
**Kernel domain layer** -- pure data definitions.  No I/O.  Stores hand
these snapshots to the engines; engines return new snapshots and never
mutate the ones they are given.

Invariants enforced
-------------------
* All monetary fields are ``Decimal`` quantized to 2 places.
* ``Invoice.payable == amount + vat - retention``.
* ``Invoice.receipt_date is not None`` if and only if status is PAID.
* Amounts, VAT, retention and contract values are non-negative.

Failure modes
-------------
* ``NegativeAmountError``, ``PayableMismatchError``,
  ``ReceiptDateRequiredError``, ``UnexpectedReceiptDateError`` and
  ``InvalidInvoiceStatusError`` raised from ``__post_init__``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from invoice_kernel.domain.amounts import require_non_negative, to_amount
from invoice_kernel.exceptions import (
    InvalidInvoiceStatusError,
    PayableMismatchError,
    ReceiptDateRequiredError,
    UnexpectedReceiptDateError,
)

Identifier = str | int


class InvoiceStatus(str, Enum):
    """Custody of a partial invoice.

    PMD, PMT and FINANCE are desks holding the invoice; PAID means cash was
    received.  Any state may move to any other.
    """

    PMD = "PMD"  # Supply chain
    PMT = "PMT"  # Project management team
    FINANCE = "FINANCE"
    PAID = "PAID"

    @classmethod
    def parse(cls, value: InvoiceStatus | str) -> InvoiceStatus:
        """Parse a boundary value; unknown strings are rejected."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        raise InvalidInvoiceStatusError(value)

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]


_STATUS_LABELS = {
    InvoiceStatus.PAID: "Total Amount Collected",
    InvoiceStatus.FINANCE: "Invoices Under Finance",
    InvoiceStatus.PMD: "Invoices Under Supply Chain",
    InvoiceStatus.PMT: "Invoices Under PMT",
}


def identifier_sort_key(identifier: Identifier) -> tuple[int, int | str]:
    """Order numeric identifiers numerically and place other strings after them."""
    if isinstance(identifier, int):
        return (0, identifier)
    text = str(identifier)
    if text.isdigit():
        return (0, int(text))
    return (1, text)


@dataclass(frozen=True)
class Contract:
    """An awarded scope of work (MOC) with a fixed VAT-exclusive value.

    ``pssr_status``, ``prb_status`` and ``remarks`` are carried opaquely.
    """

    contract_id: Identifier
    contract_number: str
    contract_value: Decimal
    project_type: str = ""
    short_description: str | None = None
    cwo: str | None = None
    pssr_status: str | None = None
    prb_status: str | None = None
    remarks: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "contract_value",
            require_non_negative(self.contract_value, "contract_value"),
        )


@dataclass(frozen=True)
class Invoice:
    """One partial billing event against a contract.

    Contract: frozen; construction validates the payable identity and the
    receipt-date rule.  New snapshots are produced by
    ``invoice_engines.status_machine``.
    """

    invoice_id: Identifier
    contract_id: Identifier
    invoice_number: str
    invoice_date: date
    amount: Decimal
    vat: Decimal
    retention: Decimal
    payable: Decimal
    status: InvoiceStatus = InvoiceStatus.PMD
    receipt_date: date | None = None

    def __post_init__(self) -> None:
        for attr in ("amount", "vat", "retention"):
            object.__setattr__(self, attr, require_non_negative(getattr(self, attr), attr))
        object.__setattr__(self, "payable", to_amount(self.payable, "payable"))
        object.__setattr__(self, "status", InvoiceStatus.parse(self.status))

        expected = self.amount + self.vat - self.retention
        if self.payable != expected:
            raise PayableMismatchError(self.invoice_id, str(expected), str(self.payable))

        if self.status is InvoiceStatus.PAID and self.receipt_date is None:
            raise ReceiptDateRequiredError(self.invoice_id)
        if self.status is not InvoiceStatus.PAID and self.receipt_date is not None:
            raise UnexpectedReceiptDateError(self.invoice_id, self.status.value)

    @property
    def amount_with_vat(self) -> Decimal:
        return self.amount + self.vat

    @property
    def is_paid(self) -> bool:
        return self.status is InvoiceStatus.PAID


@dataclass(frozen=True)
class ContractSnapshot:
    """A contract together with the invoices raised against it."""

    contract: Contract
    invoices: tuple[Invoice, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "invoices", tuple(self.invoices))


@dataclass(frozen=True)
class Supplier:
    """A vendor owning zero or more purchase orders."""

    supplier_id: Identifier
    name: str
    location: str | None = None


@dataclass(frozen=True)
class PurchaseOrder:
    """A supplier purchase order.

    Original-currency values plus local-currency equivalents resolved by the
    caller.  No conversion happens here.
    """

    po_number: str
    supplier_id: Identifier
    currency: str
    po_value: Decimal
    po_value_with_vat: Decimal
    local_value: Decimal
    local_value_with_vat: Decimal

    def __post_init__(self) -> None:
        for attr in ("po_value", "po_value_with_vat", "local_value", "local_value_with_vat"):
            object.__setattr__(self, attr, require_non_negative(getattr(self, attr), attr))


@dataclass(frozen=True)
class CertifiedInvoiceRecord:
    """A certified supplier invoice posted against a purchase order."""

    certified_date: date
    invoice_number: str
    payment_type: str
    po_number: str
    payable: Decimal
    invoice_date: date | None = None
    invoice_amount: Decimal | None = None
    contract_type: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "payable", to_amount(self.payable, "payable"))
        if self.invoice_amount is not None:
            object.__setattr__(
                self, "invoice_amount", to_amount(self.invoice_amount, "invoice_amount")
            )
