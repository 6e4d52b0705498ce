"""
Property-based tests for the invoice calculation engines.

Properties checked:
- Derivation: vat and retention are the rounded products, payable is their sum
- Payable identity survives every status move and amount edit
- Status application is idempotent
- Any non-PAID target clears the receipt date
- Portfolio totals do not depend on snapshot order
- Statement running balances step down by each debit
"""

from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from invoice_engines.derivation import derive_amounts
from invoice_engines.portfolio import aggregate_portfolio
from invoice_engines.status_machine import apply_status, create_invoice, edit_amounts
from invoice_engines.supplier_ledger import build_statement
from invoice_kernel.domain.models import (
    CertifiedInvoiceRecord,
    Contract,
    ContractSnapshot,
    InvoiceStatus,
)

pytestmark = pytest.mark.property

FAST = settings(
    max_examples=60,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)

amounts = st.decimals(
    min_value=Decimal("0"),
    max_value=Decimal("999999999.99"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)
statuses = st.sampled_from(list(InvoiceStatus))
dates = st.dates(min_value=date(2018, 1, 1), max_value=date(2030, 12, 31))


def _half_up(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _invoice(invoice_id, contract_id, amount, status, when):
    invoice = create_invoice(invoice_id, contract_id, f"INV-C-{invoice_id:03d}", when, amount)
    receipt = when + timedelta(days=30) if status is InvoiceStatus.PAID else None
    return apply_status(invoice, status, receipt)


class TestDerivationProperties:

    @FAST
    @given(amount=amounts)
    def test_components_follow_rates(self, amount):
        derived = derive_amounts(amount)
        assert derived.vat == _half_up(amount * Decimal("0.15"))
        assert derived.retention == _half_up(amount * Decimal("0.10"))
        assert derived.payable == derived.amount + derived.vat - derived.retention

    @FAST
    @given(amount=amounts)
    def test_components_never_negative(self, amount):
        derived = derive_amounts(amount)
        assert derived.vat >= 0
        assert derived.retention >= 0
        assert derived.payable >= 0


class TestStatusMachineProperties:

    @FAST
    @given(
        amount=amounts,
        moves=st.lists(st.tuples(statuses, st.one_of(st.none(), dates)), min_size=1, max_size=8),
    )
    def test_payable_identity_across_moves(self, amount, moves):
        invoice = create_invoice(1, 1, "INV-C-001", date(2024, 1, 1), amount)
        for status, when in moves:
            if status is InvoiceStatus.PAID and when is None:
                continue
            invoice = apply_status(invoice, status, when)
            assert invoice.status is status
            assert invoice.payable == invoice.amount + invoice.vat - invoice.retention

    @FAST
    @given(amount=amounts, vat=amounts, retention=amounts)
    def test_payable_identity_after_overrides(self, amount, vat, retention):
        invoice = create_invoice(1, 1, "INV-C-001", date(2024, 1, 1), Decimal("100.00"))
        edited = edit_amounts(invoice, amount=amount, vat=vat, retention=retention)
        assert edited.vat == vat
        assert edited.retention == retention
        assert edited.payable == amount + vat - retention

    @FAST
    @given(start=statuses, target=statuses, when=dates)
    def test_apply_status_idempotent(self, start, target, when):
        invoice = _invoice(1, 1, Decimal("1000.00"), start, date(2024, 1, 1))
        once = apply_status(invoice, target, when)
        twice = apply_status(once, target, when)
        assert once == twice

    @FAST
    @given(
        start=statuses,
        target=st.sampled_from([s for s in InvoiceStatus if s is not InvoiceStatus.PAID]),
        when=st.one_of(st.none(), dates),
    )
    def test_non_paid_target_clears_receipt_date(self, start, target, when):
        invoice = _invoice(1, 1, Decimal("1000.00"), start, date(2024, 1, 1))
        moved = apply_status(invoice, target, when)
        assert moved.receipt_date is None


class TestPortfolioProperties:

    @FAST
    @given(
        rows=st.lists(
            st.tuples(st.sampled_from(["Turnaround", "Non-TA"]), amounts, statuses),
            min_size=1,
            max_size=6,
        ),
        data=st.data(),
    )
    def test_totals_independent_of_order(self, rows, data):
        snapshots = []
        for index, (project_type, amount, status) in enumerate(rows, start=1):
            contract = Contract(
                contract_id=index,
                contract_number=f"MOC-{index:03d}",
                contract_value=amount * 2,
                project_type=project_type,
            )
            invoice = _invoice(index * 10, index, amount, status, date(2024, 1, index % 28 + 1))
            snapshots.append(ContractSnapshot(contract, (invoice,)))

        shuffled = data.draw(st.permutations(snapshots))
        assert aggregate_portfolio(snapshots) == aggregate_portfolio(shuffled)


class TestLedgerProperties:

    @FAST
    @given(
        opening=amounts,
        payables=st.lists(st.tuples(dates, amounts), max_size=10),
    )
    def test_running_balance_steps_by_debit(self, opening, payables):
        records = [
            CertifiedInvoiceRecord(
                certified_date=when,
                invoice_number=f"SUP-{n:04d}",
                payment_type="Progress",
                po_number="4500000001",
                payable=payable,
            )
            for n, (when, payable) in enumerate(payables)
        ]
        statement = build_statement(opening, records)

        assert len(statement.rows) == len(records) + 1
        previous = statement.rows[0].running_balance
        assert previous == opening
        for row in statement.entries:
            assert row.running_balance == previous - row.debit
            previous = row.running_balance
        assert statement.balance_remaining == opening - sum(p for _, p in payables)
