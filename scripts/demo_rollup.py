#!/usr/bin/env python3
"""
Roll up a store export and print dashboard figures as JSON (no DB).

Loads contracts, invoices, suppliers, purchase orders and certified supplier
invoices from a YAML or JSON file, resolves rates through
``invoice_config.get_active_rates`` and prints the portfolio summary.  With
``--supplier`` it also prints that supplier's statement of account.

Usage:
  python3 scripts/demo_rollup.py --data scripts/sample_snapshot.yaml
  python3 scripts/demo_rollup.py --data export.json --project-type Turnaround \\
    --vat-mode inclusive --supplier 7 [--start-date 2024-01-01] [--end-date 2024-12-31]

Output: one JSON document with ``portfolio``, ``rejected`` and, when asked,
``statement`` keys.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Any
from uuid import uuid4

import yaml

# ---------------------------------------------------------------------------
# Project root on sys.path
# ---------------------------------------------------------------------------
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from invoice_config import get_active_rates  # noqa: E402
from invoice_engines import (  # noqa: E402
    UnitMode,
    VatMode,
    aggregate_portfolio,
    build_statement,
    opening_balance_from_purchase_orders,
)
from invoice_kernel.domain.snapshots import (  # noqa: E402
    certified_record_from_record,
    purchase_order_from_record,
    render_to_dict,
    snapshots_from_records,
    supplier_from_record,
)
from invoice_kernel.logging_config import LogContext, configure_logging  # noqa: E402


def load_export(path: Path) -> dict[str, Any]:
    """Read a YAML or JSON export (JSON is valid YAML)."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def supplier_statement(
    data: dict[str, Any],
    supplier_id: str,
    start_date: date | None = None,
    end_date: date | None = None,
) -> dict[str, Any]:
    """Statement of account for one supplier in the export."""
    suppliers = [supplier_from_record(r) for r in data.get("suppliers", ())]
    matches = [s for s in suppliers if str(s.supplier_id) == supplier_id]
    if not matches:
        raise SystemExit(f"Unknown supplier {supplier_id!r}")
    supplier = matches[0]

    purchase_orders = [
        po
        for po in (purchase_order_from_record(r) for r in data.get("purchase_orders", ()))
        if str(po.supplier_id) == supplier_id
    ]
    po_numbers = {po.po_number for po in purchase_orders}

    # certified records carry the PO reference; a supplier id column is optional
    records = []
    for raw in data.get("certified_invoices", ()):
        record = certified_record_from_record(raw)
        owner = raw.get("supplier_id", raw.get("supplierId"))
        if record.po_number in po_numbers or (owner is not None and str(owner) == supplier_id):
            records.append(record)

    statement = build_statement(
        opening_balance_from_purchase_orders(purchase_orders),
        records,
        supplier_name=supplier.name,
        start_date=start_date,
        end_date=end_date,
        supplier_id=supplier.supplier_id,
    )
    return render_to_dict(statement)


def run(args: argparse.Namespace) -> dict[str, Any]:
    data = load_export(args.data)
    rates = get_active_rates(args.jurisdiction, args.as_of, args.config_dir)

    loaded = snapshots_from_records(data.get("contracts", ()), data.get("invoices", ()))
    summary = aggregate_portfolio(
        loaded.snapshots,
        project_type_filter=args.project_type,
        vat_mode=VatMode(args.vat_mode),
        unit_mode=UnitMode(args.units),
        rates=rates,
    )

    output: dict[str, Any] = {
        "portfolio": render_to_dict(summary),
        "rejected": render_to_dict(loaded.rejected),
    }
    if args.supplier is not None:
        output["statement"] = supplier_statement(
            data, args.supplier, args.start_date, args.end_date
        )
    return output


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Print portfolio and supplier statement figures from a store export.",
    )
    parser.add_argument("--data", type=Path, required=True, help="YAML or JSON export")
    parser.add_argument("--jurisdiction", default="SA", help="Rate set jurisdiction (default SA)")
    parser.add_argument(
        "--as-of",
        type=date.fromisoformat,
        default=None,
        help="Rate effective date YYYY-MM-DD (default today)",
    )
    parser.add_argument("--config-dir", type=Path, default=None, help="Override rate sets directory")
    parser.add_argument("--project-type", default=None, help='Project type filter or "Overall"')
    parser.add_argument(
        "--vat-mode",
        choices=[m.value for m in VatMode],
        default=VatMode.EXCLUSIVE.value,
    )
    parser.add_argument(
        "--units",
        choices=[m.value for m in UnitMode],
        default=UnitMode.FULL.value,
    )
    parser.add_argument("--supplier", default=None, help="Supplier id for a statement of account")
    parser.add_argument("--start-date", type=date.fromisoformat, default=None)
    parser.add_argument("--end-date", type=date.fromisoformat, default=None)
    parser.add_argument("--actor", default=None, help="Actor id recorded in log context")
    parser.add_argument("--verbose", "-v", action="store_true", help="Emit structured logs to stderr")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.as_of is None:
        args.as_of = date.today()
    configure_logging(level=logging.DEBUG if args.verbose else logging.WARNING)

    with LogContext.bind(correlation_id=str(uuid4()), actor_id=args.actor):
        output = run(args)
    print(json.dumps(output, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
