"""Tests for scripts/demo_rollup.py against the bundled sample export."""

import json
from pathlib import Path

import pytest

from invoice_kernel.logging_config import LogContext
from scripts.demo_rollup import build_parser, main, run

ROOT = Path(__file__).resolve().parents[2]
SAMPLE = ROOT / "scripts" / "sample_snapshot.yaml"


def _run_main(capsys, *extra):
    code = main(["--data", str(SAMPLE), "--as-of", "2024-06-01", *extra])
    assert code == 0
    return json.loads(capsys.readouterr().out)


class TestDemoRollup:

    def test_portfolio_figures(self, capsys):
        output = _run_main(capsys)
        portfolio = output["portfolio"]
        assert portfolio["awarded_value"] == "263708.00"
        assert portfolio["submitted_value"] == "163708.00"
        assert portfolio["collected_value"] == "14393.40"
        assert portfolio["project_types"] == ["Non-TA", "Turnaround"]
        assert output["rejected"] == []
        assert "statement" not in output

    def test_project_type_filter(self, capsys):
        output = _run_main(capsys, "--project-type", "Turnaround")
        portfolio = output["portfolio"]
        assert portfolio["project_type_filter"] == "Turnaround"
        assert portfolio["awarded_value"] == "13708.00"
        assert len(portfolio["contract_rollups"]) == 1

    def test_supplier_statement(self, capsys):
        output = _run_main(capsys, "--supplier", "7")
        statement = output["statement"]
        assert statement["supplier_name"] == "Gulf Valves Trading"
        assert statement["opening_balance"] == "100000.00"
        assert [r["description"] for r in statement["rows"]] == [
            "Opening Balance", "GVT-0001", "GVT-0002",
        ]
        assert statement["balance_remaining"] == "50000.00"

    def test_statement_window(self, capsys):
        output = _run_main(capsys, "--supplier", "7", "--start-date", "2024-04-01")
        statement = output["statement"]
        assert len(statement["rows"]) == 2
        assert statement["total_certified"] == "20000.00"

    def test_unknown_supplier_exits(self):
        args = build_parser().parse_args([
            "--data", str(SAMPLE), "--as-of", "2024-06-01", "--supplier", "99",
        ])
        with pytest.raises(SystemExit, match="Unknown supplier"):
            run(args)

    def test_rejects_bad_vat_mode(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--data", str(SAMPLE), "--vat-mode", "gross"])

    def test_statement_from_store_alias_export(self, tmp_path, capsys):
        export = {
            "contracts": [],
            "invoices": [],
            "suppliers": [{"supplierId": 7, "supplier": "Gulf Valves Trading"}],
            "purchase_orders": [{
                "poNumber": "4500012345",
                "supplierId": 7,
                "currency": "SAR",
                "poValue": "86956.52",
                "poValueWithVAT": "100000.00",
                "poValueInSAR": "86956.52",
                "poValueWithVATInSAR": "100000.00",
            }],
            "certified_invoices": [{
                "certified_date": "2024-03-01",
                "invoiceNo": "GVT-0001",
                "payment_type": "Advance",
                "poNumber": "4500012345",
                "payable": "30000.00",
            }],
        }
        path = tmp_path / "export.json"
        path.write_text(json.dumps(export))

        code = main(["--data", str(path), "--as-of", "2024-06-01", "--supplier", "7"])

        assert code == 0
        statement = json.loads(capsys.readouterr().out)["statement"]
        assert statement["opening_balance"] == "100000.00"
        assert [r["description"] for r in statement["rows"]] == ["Opening Balance", "GVT-0001"]
        assert statement["balance_remaining"] == "70000.00"

    def test_actor_bound_only_during_run(self, capsys):
        _run_main(capsys, "--actor", "finance-clerk")

        assert LogContext.get_all() == {}
