"""
Pure domain layer.

This module contains frozen value objects and boundary conversion
with NO dependencies on:
- Database or stores
- Time/clock
- I/O

All domain objects are immutable and deterministic.
"""

from invoice_kernel.domain.amounts import (
    TWO_PLACES,
    ZERO,
    percentage,
    ratio,
    require_non_negative,
    round2,
    sum_amounts,
    to_amount,
    to_decimal,
)
from invoice_kernel.domain.models import (
    CertifiedInvoiceRecord,
    Contract,
    ContractSnapshot,
    Identifier,
    Invoice,
    InvoiceStatus,
    PurchaseOrder,
    Supplier,
    identifier_sort_key,
)
from invoice_kernel.domain.snapshots import (
    LoadResult,
    RejectedRecord,
    certified_record_from_record,
    contract_from_record,
    invoice_from_record,
    purchase_order_from_record,
    render_to_dict,
    snapshot_from_record,
    snapshots_from_records,
    supplier_from_record,
)
from invoice_kernel.domain.workflow import Guard, Transition, Workflow

__all__ = [
    # Amounts
    "TWO_PLACES",
    "ZERO",
    "percentage",
    "ratio",
    "require_non_negative",
    "round2",
    "sum_amounts",
    "to_amount",
    "to_decimal",
    # Models
    "CertifiedInvoiceRecord",
    "Contract",
    "ContractSnapshot",
    "Identifier",
    "Invoice",
    "InvoiceStatus",
    "PurchaseOrder",
    "Supplier",
    "identifier_sort_key",
    # Snapshots
    "LoadResult",
    "RejectedRecord",
    "certified_record_from_record",
    "contract_from_record",
    "invoice_from_record",
    "purchase_order_from_record",
    "render_to_dict",
    "snapshot_from_record",
    "snapshots_from_records",
    "supplier_from_record",
    # Workflow
    "Guard",
    "Transition",
    "Workflow",
]
