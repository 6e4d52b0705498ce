"""
Pytest fixtures for the invoice engine test suite.

Provides:
- Structured logging configured for every test session
- LogContext isolation between tests
- ``captured_logs`` for asserting on emitted JSON log records
- Contract, invoice and supplier factories
"""

import json
import logging
from collections.abc import Callable
from datetime import date
from decimal import Decimal
from io import StringIO

import pytest

from invoice_engines.derivation import derive_amounts
from invoice_kernel.domain.models import (
    CertifiedInvoiceRecord,
    Contract,
    ContractSnapshot,
    Invoice,
    InvoiceStatus,
    PurchaseOrder,
    Supplier,
)
from invoice_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture invoice_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            rollup_contract(contract, invoices)
            logs = captured_logs()
            assert any(r["message"] == "contract_rollup_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("invoice_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Domain factories
# =============================================================================


@pytest.fixture
def make_contract() -> Callable[..., Contract]:
    """Factory for contracts; override any field by keyword."""

    def _make(
        contract_id=1,
        contract_number="MOC-101",
        contract_value="13708.00",
        project_type="Turnaround",
        **kwargs,
    ) -> Contract:
        return Contract(
            contract_id=contract_id,
            contract_number=contract_number,
            contract_value=Decimal(contract_value),
            project_type=project_type,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_invoice() -> Callable[..., Invoice]:
    """Factory for invoices with amounts derived at the default rates."""

    def _make(
        invoice_id=11,
        contract_id=1,
        amount="13708.00",
        status=InvoiceStatus.PMD,
        invoice_date=date(2024, 2, 1),
        receipt_date=None,
        invoice_number=None,
    ) -> Invoice:
        derived = derive_amounts(Decimal(amount))
        if status is InvoiceStatus.PAID and receipt_date is None:
            receipt_date = date(2024, 3, 15)
        return Invoice(
            invoice_id=invoice_id,
            contract_id=contract_id,
            invoice_number=invoice_number or f"CWO-1 INV-C-{invoice_id:03d}",
            invoice_date=invoice_date,
            amount=derived.amount,
            vat=derived.vat,
            retention=derived.retention,
            payable=derived.payable,
            status=status,
            receipt_date=receipt_date,
        )

    return _make


@pytest.fixture
def portfolio_snapshots(make_contract, make_invoice) -> tuple[ContractSnapshot, ...]:
    """Three contracts across two project types with invoices in every status."""
    turnaround = make_contract()
    flare = make_contract(
        contract_id=2,
        contract_number="MOC-102",
        contract_value="250000.00",
        project_type="Non-TA",
    )
    empty = make_contract(
        contract_id=3,
        contract_number="MOC-103",
        contract_value="0.00",
        project_type="Non-TA",
    )
    return (
        ContractSnapshot(turnaround, (
            make_invoice(11, 1, "13708.00", InvoiceStatus.PAID),
        )),
        ContractSnapshot(flare, (
            make_invoice(21, 2, "100000.00", InvoiceStatus.FINANCE, date(2024, 1, 10)),
            make_invoice(22, 2, "50000.00", InvoiceStatus.PMT, date(2024, 2, 20)),
            make_invoice(23, 2, "20000.00", InvoiceStatus.PMD, date(2024, 3, 5)),
        )),
        ContractSnapshot(empty, ()),
    )


@pytest.fixture
def supplier() -> Supplier:
    return Supplier(supplier_id=7, name="Gulf Valves Trading", location="Dammam")


@pytest.fixture
def make_record() -> Callable[..., CertifiedInvoiceRecord]:
    """Factory for certified supplier invoices."""

    def _make(
        invoice_number="GVT-0001",
        certified_date=date(2024, 3, 1),
        payable="30000.00",
        po_number="4500012345",
        payment_type="Progress",
    ) -> CertifiedInvoiceRecord:
        return CertifiedInvoiceRecord(
            certified_date=certified_date,
            invoice_number=invoice_number,
            payment_type=payment_type,
            po_number=po_number,
            payable=Decimal(payable),
        )

    return _make


@pytest.fixture
def make_purchase_order() -> Callable[..., PurchaseOrder]:
    def _make(po_number="4500012345", supplier_id=7, local_value_with_vat="100000.00"):
        with_vat = Decimal(local_value_with_vat)
        without_vat = (with_vat / Decimal("1.15")).quantize(Decimal("0.01"))
        return PurchaseOrder(
            po_number=po_number,
            supplier_id=supplier_id,
            currency="SAR",
            po_value=without_vat,
            po_value_with_vat=with_vat,
            local_value=without_vat,
            local_value_with_vat=with_vat,
        )

    return _make
