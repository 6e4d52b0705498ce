"""
Typed Exception Hierarchy for the Invoice Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Dashboards and invoice-entry screens must react to specific failures (re-prompt
for a receipt date, reject a negative amount) without parsing message text.

Every error therefore:
  1. Has a TYPED exception class (catch by type, not message)
  2. Has a CODE attribute (machine-readable, API-safe)
  3. Carries structured DATA (not just a message string)

Example:
    try:
        invoice = apply_status(invoice, InvoiceStatus.PAID)
    except ReceiptDateRequiredError as e:
        prompt_for_receipt_date(e.invoice_id)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InvoiceEngineError (base)
    |
    +-- ValidationError
    |   +-- ReceiptDateRequiredError
    |   +-- UnexpectedReceiptDateError
    |   +-- NegativeAmountError
    |   +-- PayableMismatchError
    |   +-- InvalidInvoiceStatusError
    |   +-- InvalidAmountError
    |
    +-- ConfigurationError
        +-- RateConfigNotFoundError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Validation      | RECEIPT_DATE_REQUIRED       | Transition into PAID without receipt date
                | UNEXPECTED_RECEIPT_DATE     | Non-PAID invoice carrying a receipt date
                | NEGATIVE_AMOUNT             | amount / vat / retention / value < 0
                | PAYABLE_MISMATCH            | payable != amount + vat - retention
                | INVALID_INVOICE_STATUS      | Status outside PMD/PMT/FINANCE/PAID
                | INVALID_AMOUNT              | Value not convertible to Decimal
----------------|-----------------------------|-----------------------------------------
Configuration   | RATE_CONFIG_NOT_FOUND       | No rate set for jurisdiction/date

Zero contract values, empty invoice lists, over-certified suppliers and
unknown project-type filters are NOT errors; engines return defined zero or
negative results for them.
"""

from __future__ import annotations


class InvoiceEngineError(Exception):
    """
    Base exception for all invoice engine errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "INVOICE_ENGINE_ERROR"


# Validation exceptions


class ValidationError(InvoiceEngineError):
    """Base exception for rejected invoice data or transitions."""

    code: str = "VALIDATION_ERROR"


class ReceiptDateRequiredError(ValidationError):
    """A transition into PAID was requested without a receipt date."""

    code: str = "RECEIPT_DATE_REQUIRED"

    def __init__(self, invoice_id: str | None = None):
        self.invoice_id = invoice_id
        super().__init__(
            f"Receipt date is required for PAID status (invoice {invoice_id})"
        )


class UnexpectedReceiptDateError(ValidationError):
    """An invoice outside PAID status carries a receipt date."""

    code: str = "UNEXPECTED_RECEIPT_DATE"

    def __init__(self, invoice_id: str | None, status: str):
        self.invoice_id = invoice_id
        self.status = status
        super().__init__(
            f"Invoice {invoice_id} in status {status} cannot carry a receipt date"
        )


class NegativeAmountError(ValidationError):
    """A monetary input that must be non-negative was negative."""

    code: str = "NEGATIVE_AMOUNT"

    def __init__(self, field_name: str, amount: str):
        self.field_name = field_name
        self.amount = amount
        super().__init__(f"{field_name} must be non-negative, got {amount}")


class PayableMismatchError(ValidationError):
    """Stored payable does not equal amount + vat - retention."""

    code: str = "PAYABLE_MISMATCH"

    def __init__(self, invoice_id: str | None, expected: str, actual: str):
        self.invoice_id = invoice_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Payable mismatch for invoice {invoice_id}: "
            f"expected {expected}, got {actual}"
        )


class InvalidInvoiceStatusError(ValidationError):
    """Status value is not one of PMD, PMT, FINANCE, PAID."""

    code: str = "INVALID_INVOICE_STATUS"

    def __init__(self, status: object):
        self.status = str(status)
        super().__init__(f"Unknown invoice status: {status!r}")


class InvalidAmountError(ValidationError):
    """Value cannot be interpreted as an exact decimal amount."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, field_name: str, value: object):
        self.field_name = field_name
        self.value = repr(value)
        super().__init__(f"Invalid amount for {field_name}: {value!r}")


# Configuration exceptions


class ConfigurationError(InvoiceEngineError):
    """Base exception for rate configuration errors."""

    code: str = "CONFIGURATION_ERROR"


class RateConfigNotFoundError(ConfigurationError):
    """No rate set matches the requested jurisdiction and date."""

    code: str = "RATE_CONFIG_NOT_FOUND"

    def __init__(self, jurisdiction: str, as_of_date: str):
        self.jurisdiction = jurisdiction
        self.as_of_date = as_of_date
        super().__init__(
            f"No rate configuration for jurisdiction {jurisdiction} "
            f"effective on {as_of_date}"
        )
