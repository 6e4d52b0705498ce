"""
Tests for Contract Rollup.

Covers:
- The single fully-collected invoice reference scenario
- Per-status totals across mixed statuses
- Zero-value contracts and empty invoice lists
- Row ordering and skipping of foreign invoices
"""

from datetime import date
from decimal import Decimal

from invoice_engines.contract_rollup import rollup_contract
from invoice_kernel.domain.models import InvoiceStatus
from invoice_kernel.logging_config import LogContext


class TestReferenceScenario:
    """Contract 13708.00 with one PAID invoice for the full amount."""

    def test_figures(self, make_contract, make_invoice):
        contract = make_contract(contract_value="13708.00")
        invoice = make_invoice(amount="13708.00", status=InvoiceStatus.PAID)

        rollup = rollup_contract(contract, [invoice])

        assert invoice.vat == Decimal("2056.20")
        assert invoice.retention == Decimal("1370.80")
        assert invoice.payable == Decimal("14393.40")
        assert rollup.total_received == Decimal("14393.40")
        assert rollup.contract_value_with_vat == Decimal("15764.20")
        assert rollup.balance_outstanding == Decimal("1370.80")
        assert rollup.submitted_percentage == Decimal("100.00")
        assert rollup.retention_held == Decimal("1370.80")
        assert not rollup.is_fully_collected


class TestMixedStatuses:
    """Tests for totals across invoices in different statuses."""

    def setup_invoices(self, make_invoice):
        return [
            make_invoice(21, 2, "100000.00", InvoiceStatus.FINANCE, date(2024, 1, 10)),
            make_invoice(22, 2, "50000.00", InvoiceStatus.PMT, date(2024, 2, 20)),
            make_invoice(23, 2, "20000.00", InvoiceStatus.PAID, date(2024, 3, 5)),
        ]

    def test_totals(self, make_contract, make_invoice):
        contract = make_contract(contract_id=2, contract_value="250000.00")
        rollup = rollup_contract(contract, self.setup_invoices(make_invoice))

        assert rollup.total_submitted == Decimal("170000.00")
        assert rollup.total_submitted_with_vat == Decimal("195500.00")
        assert rollup.total_received == Decimal("21000.00")
        assert rollup.total_vat == Decimal("25500.00")
        assert rollup.total_retention == Decimal("17000.00")
        assert rollup.total_payable == Decimal("178500.00")
        assert rollup.retention_held == Decimal("2000.00")
        assert rollup.invoice_count == 3
        assert rollup.contract_value_with_vat == Decimal("287500.00")
        assert rollup.balance_outstanding == Decimal("266500.00")
        assert rollup.submitted_percentage == Decimal("68.00")

    def test_under_status_covers_every_status(self, make_contract, make_invoice):
        contract = make_contract(contract_id=2, contract_value="250000.00")
        rollup = rollup_contract(contract, self.setup_invoices(make_invoice))

        assert rollup.total_under_status == {
            InvoiceStatus.PMD: Decimal("0.00"),
            InvoiceStatus.PMT: Decimal("57500.00"),
            InvoiceStatus.FINANCE: Decimal("115000.00"),
            InvoiceStatus.PAID: Decimal("23000.00"),
        }
        assert sum(rollup.total_under_status.values()) == rollup.total_submitted_with_vat

    def test_input_order_irrelevant(self, make_contract, make_invoice):
        contract = make_contract(contract_id=2, contract_value="250000.00")
        invoices = self.setup_invoices(make_invoice)

        forward = rollup_contract(contract, invoices)
        backward = rollup_contract(contract, list(reversed(invoices)))

        assert forward == backward

    def test_custom_vat_rate_for_contract_value(self, make_contract, make_invoice):
        contract = make_contract(contract_id=2, contract_value="250000.00")
        rollup = rollup_contract(contract, [], Decimal("0.05"))

        assert rollup.contract_value_with_vat == Decimal("262500.00")


class TestEdgeCases:
    """Tests for empty and degenerate contracts."""

    def test_no_invoices(self, make_contract):
        rollup = rollup_contract(make_contract(), [])

        assert rollup.total_submitted == Decimal("0.00")
        assert rollup.total_received == Decimal("0.00")
        assert rollup.submitted_percentage == Decimal("0.00")
        assert rollup.balance_outstanding == rollup.contract_value_with_vat
        assert set(rollup.total_under_status) == set(InvoiceStatus)
        assert rollup.rows == ()

    def test_zero_contract_value(self, make_contract, make_invoice):
        contract = make_contract(contract_value="0.00")
        rollup = rollup_contract(contract, [make_invoice(amount="500.00")])

        assert rollup.submitted_percentage == Decimal("0.00")
        assert rollup.contract_value_with_vat == Decimal("0.00")

    def test_percentage_left_unrounded(self, make_contract, make_invoice):
        contract = make_contract(contract_value="3.00")
        rollup = rollup_contract(contract, [make_invoice(amount="1.00")])

        assert rollup.submitted_percentage == Decimal("100") * Decimal("1.00") / Decimal("3.00")
        assert rollup.submitted_percentage != Decimal("33.33")

    def test_overcollection_gives_negative_balance(self, make_contract, make_invoice):
        contract = make_contract(contract_value="100.00")
        rollup = rollup_contract(
            contract, [make_invoice(amount="200.00", status=InvoiceStatus.PAID)]
        )

        assert rollup.balance_outstanding == Decimal("-95.00")
        assert rollup.is_fully_collected


class TestRowsAndSkipping:
    """Tests for row ordering and foreign invoices."""

    def test_rows_sorted_by_date_then_id(self, make_contract, make_invoice):
        invoices = [
            make_invoice(12, invoice_date=date(2024, 2, 1)),
            make_invoice(3, invoice_date=date(2024, 3, 1)),
            make_invoice(10, invoice_date=date(2024, 2, 1)),
            make_invoice(2, invoice_date=date(2024, 1, 1)),
        ]

        rollup = rollup_contract(make_contract(), invoices)

        assert [i.invoice_id for i in rollup.rows] == [2, 10, 12, 3]

    def test_foreign_invoice_skipped_and_logged(self, make_contract, make_invoice, captured_logs):
        invoices = [make_invoice(11, contract_id=1), make_invoice(99, contract_id=42)]

        rollup = rollup_contract(make_contract(contract_id=1), invoices)

        assert rollup.invoice_count == 1
        assert rollup.skipped_invoice_ids == (99,)
        warnings = [r for r in captured_logs() if r["message"] == "rollup_invoices_skipped"]
        assert warnings[0]["skipped_invoice_ids"] == ["99"]

    def test_string_and_int_contract_ids_match(self, make_contract, make_invoice):
        rollup = rollup_contract(make_contract(contract_id="1"), [make_invoice(contract_id=1)])

        assert rollup.invoice_count == 1

    def test_engine_trace_emitted(self, make_contract, captured_logs):
        rollup_contract(make_contract(), [])

        traces = [r for r in captured_logs() if r["message"] == "INVOICE_ENGINE_TRACE"]
        assert traces[-1]["engine_name"] == "contract_rollup"
        assert len(traces[-1]["input_fingerprint"]) == 16


class TestLogContextBinding:
    """rollup_contract binds the contract id for everything it logs."""

    def test_contract_id_on_every_record(self, make_contract, make_invoice, captured_logs):
        rollup_contract(make_contract(contract_id=1), [make_invoice(11, 1), make_invoice(99, 42)])

        logs = captured_logs()
        for name in ("rollup_invoices_skipped", "contract_rollup_completed"):
            record = next(r for r in logs if r["message"] == name)
            assert record["contract_id"] == "1"
        assert "contract_id" not in LogContext.get_all()

    def test_outer_context_restored(self, make_contract, captured_logs):
        with LogContext.bind(contract_id="MOC-OUTER", correlation_id="req-1"):
            rollup_contract(make_contract(contract_id=2), [])
            assert LogContext.get_all() == {"correlation_id": "req-1", "contract_id": "MOC-OUTER"}

        completed = [r for r in captured_logs() if r["message"] == "contract_rollup_completed"]
        assert completed[-1]["contract_id"] == "2"
        assert completed[-1]["correlation_id"] == "req-1"
