"""
Module: invoice_engines
Responsibility:
    Package entrypoint that re-exports all public symbols from the pure
    calculation engine sub-modules.  This is the canonical import surface
    for invoice stores, dashboards and statement exports.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import invoice_kernel, invoice_config.schema and sibling
    engine modules.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      Dates are passed in as explicit parameters.
    - Decimal-only arithmetic: all monetary amounts use ``Decimal`` rounded
      half-up to 2 places; floats are converted through ``str`` at the
      boundary.
    - Determinism: identical inputs always produce identical outputs.

Failure modes:
    - ``ValidationError`` subclasses from the status machine and amount
      derivation.  Aggregations skip bad records instead of raising.

Audit relevance:
    Aggregating engines are traced via the ``@traced_engine`` decorator
    (see ``invoice_engines.tracer``), emitting INVOICE_ENGINE_TRACE log
    records that include engine name, version, input fingerprint, and
    duration.
"""

from invoice_engines.contract_rollup import ContractRollup, rollup_contract
from invoice_engines.derivation import DerivedAmounts, derive_amounts, payable_of, round2, with_vat
from invoice_engines.numbering import find_duplicate, next_invoice_number, sequence_of
from invoice_engines.portfolio import (
    OVERALL,
    PortfolioSummary,
    StatusTotal,
    SubmissionRow,
    UnitMode,
    VatMode,
    aggregate_portfolio,
    contracts_in_status,
    filter_by_project_type,
    project_types,
    submission_summary,
)
from invoice_engines.status_machine import (
    INVOICE_WORKFLOW,
    RECEIPT_DATE_REQUIRED,
    allowed_transitions,
    apply_status,
    create_invoice,
    edit_amounts,
)
from invoice_engines.supplier_ledger import (
    StatementRow,
    SupplierStatement,
    build_statement,
    opening_balance_from_purchase_orders,
)
from invoice_engines.supplier_summary import (
    SupplierPortfolio,
    SupplierPosition,
    summarize_suppliers,
    top_suppliers,
)
from invoice_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    # Derivation
    "DerivedAmounts",
    "derive_amounts",
    "payable_of",
    "round2",
    "with_vat",
    # Status machine
    "INVOICE_WORKFLOW",
    "RECEIPT_DATE_REQUIRED",
    "allowed_transitions",
    "apply_status",
    "create_invoice",
    "edit_amounts",
    # Contract rollup
    "ContractRollup",
    "rollup_contract",
    # Portfolio
    "OVERALL",
    "PortfolioSummary",
    "StatusTotal",
    "SubmissionRow",
    "UnitMode",
    "VatMode",
    "aggregate_portfolio",
    "contracts_in_status",
    "filter_by_project_type",
    "project_types",
    "submission_summary",
    # Supplier ledger
    "StatementRow",
    "SupplierStatement",
    "build_statement",
    "opening_balance_from_purchase_orders",
    # Supplier summary
    "SupplierPortfolio",
    "SupplierPosition",
    "summarize_suppliers",
    "top_suppliers",
    # Numbering
    "find_duplicate",
    "next_invoice_number",
    "sequence_of",
    # Tracing
    "compute_input_fingerprint",
    "traced_engine",
]
