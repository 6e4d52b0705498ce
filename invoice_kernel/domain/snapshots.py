"""
Snapshots -- boundary conversion between plain records and domain objects.

Responsibility:
    Parses the plain mappings supplied by the contract, invoice and supplier
    stores into frozen domain objects, and renders any domain or result
    dataclass back into JSON-safe primitives.

Architecture position:
    Kernel > Domain -- pure functions, zero I/O.  Stores fetch; this module
    only converts what it is handed.

Invariants enforced:
    - Amounts are parsed from their string/number form into Decimal without
      passing through float arithmetic.
    - Rendering is lossless: ``parse(render(x)) == x`` for every record type.
    - A malformed invoice or contract record is rejected individually and
      reported; it never aborts the batch.

Failure modes:
    - Single-record parsers raise ``ValidationError`` subclasses, ``KeyError``
      for missing required keys and ``ValueError`` for malformed dates.
    - ``snapshots_from_records`` never raises for a bad record; it returns
      it in ``LoadResult.rejected``.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from invoice_kernel.domain.models import (
    CertifiedInvoiceRecord,
    Contract,
    ContractSnapshot,
    Invoice,
    InvoiceStatus,
    PurchaseOrder,
    Supplier,
)
from invoice_kernel.exceptions import InvoiceEngineError
from invoice_kernel.logging_config import get_logger

logger = get_logger("domain.snapshots")

_MISSING = object()

# Column names used by the stores alongside the canonical field names.
_ALIASES: dict[str, tuple[str, ...]] = {
    "contract_id": ("contractId", "mocId", "moc_id"),
    "contract_number": ("contractNumber", "mocNo", "moc_no"),
    "contract_value": ("contractValue",),
    "project_type": ("projectType", "type"),
    "short_description": ("shortDescription",),
    "pssr_status": ("pssrStatus",),
    "prb_status": ("prbStatus",),
    "invoice_id": ("invoiceId", "id"),
    "invoice_number": ("invoiceNo", "invoice_no"),
    "invoice_date": ("invoiceDate",),
    "status": ("invoiceStatus", "invoice_status"),
    "receipt_date": ("receiptDate",),
    "po_number": ("poNumber",),
    "supplier_id": ("supplierId",),
    "po_value": ("poValue",),
    "po_value_with_vat": ("poValueWithVAT",),
    "local_value": ("poValueInSAR", "totalValueInSAR"),
    "local_value_with_vat": ("poValueWithVATInSAR", "totalWithVATInSAR"),
    "name": ("supplier",),
}


def _get(record: Mapping[str, Any], name: str, default: Any = _MISSING) -> Any:
    """Look up a field by canonical name, then by store alias."""
    if name in record:
        return record[name]
    for alias in _ALIASES.get(name, ()):
        if alias in record:
            return record[alias]
    if default is _MISSING:
        raise KeyError(name)
    return default


def parse_date(value: Any) -> date | None:
    """Parse an ISO date (or datetime) value; ``None`` and "" stay ``None``."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    raise ValueError(f"Cannot parse date from {value!r}")


def _required_date(record: Mapping[str, Any], name: str) -> date:
    parsed = parse_date(_get(record, name))
    if parsed is None:
        raise ValueError(f"{name} is required")
    return parsed


# ---------------------------------------------------------------------------
# Single-record parsers
# ---------------------------------------------------------------------------


def contract_from_record(record: Mapping[str, Any]) -> Contract:
    """Build a ``Contract`` from a store record.

    A bare ``id`` key names the contract only on contract records; on invoice
    records it is the invoice id.
    """
    return Contract(
        contract_id=_get(record, "contract_id", record.get("id", _MISSING)),
        contract_number=str(_get(record, "contract_number")),
        contract_value=_get(record, "contract_value"),
        project_type=_get(record, "project_type", "") or "",
        short_description=_get(record, "short_description", None),
        cwo=_get(record, "cwo", None),
        pssr_status=_get(record, "pssr_status", None),
        prb_status=_get(record, "prb_status", None),
        remarks=_get(record, "remarks", None),
    )


def invoice_from_record(record: Mapping[str, Any]) -> Invoice:
    """Build an ``Invoice`` from a store record.

    The stored payable is taken as-is and validated, never recomputed.
    """
    return Invoice(
        invoice_id=_get(record, "invoice_id"),
        contract_id=_get(record, "contract_id"),
        invoice_number=str(_get(record, "invoice_number")),
        invoice_date=_required_date(record, "invoice_date"),
        amount=_get(record, "amount"),
        vat=_get(record, "vat"),
        retention=_get(record, "retention"),
        payable=_get(record, "payable"),
        status=InvoiceStatus.parse(_get(record, "status")),
        receipt_date=parse_date(_get(record, "receipt_date", None)),
    )


def supplier_from_record(record: Mapping[str, Any]) -> Supplier:
    return Supplier(
        supplier_id=_get(record, "supplier_id"),
        name=str(_get(record, "name")),
        location=_get(record, "location", None),
    )


def purchase_order_from_record(record: Mapping[str, Any]) -> PurchaseOrder:
    return PurchaseOrder(
        po_number=str(_get(record, "po_number")),
        supplier_id=_get(record, "supplier_id"),
        currency=str(_get(record, "currency")),
        po_value=_get(record, "po_value"),
        po_value_with_vat=_get(record, "po_value_with_vat"),
        local_value=_get(record, "local_value"),
        local_value_with_vat=_get(record, "local_value_with_vat"),
    )


def certified_record_from_record(record: Mapping[str, Any]) -> CertifiedInvoiceRecord:
    invoice_amount = _get(record, "invoice_amount", None)
    return CertifiedInvoiceRecord(
        certified_date=_required_date(record, "certified_date"),
        invoice_number=str(_get(record, "invoice_number")),
        payment_type=str(_get(record, "payment_type", "") or ""),
        po_number=str(_get(record, "po_number", "") or ""),
        payable=_get(record, "payable"),
        invoice_date=parse_date(_get(record, "invoice_date", None)),
        invoice_amount=invoice_amount if invoice_amount not in (None, "") else None,
        contract_type=_get(record, "contract_type", None),
    )


def snapshot_from_record(record: Mapping[str, Any]) -> ContractSnapshot:
    """Build a ``ContractSnapshot`` from ``{"contract": {...}, "invoices": [...]}``."""
    return ContractSnapshot(
        contract=contract_from_record(record["contract"]),
        invoices=tuple(invoice_from_record(r) for r in record.get("invoices", ())),
    )


# ---------------------------------------------------------------------------
# Batch loading
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RejectedRecord:
    """A store record that could not be turned into a domain object."""

    kind: str
    index: int
    code: str
    message: str


@dataclass(frozen=True)
class LoadResult:
    """Snapshots built from a batch of store records plus the records skipped."""

    snapshots: tuple[ContractSnapshot, ...]
    rejected: tuple[RejectedRecord, ...] = ()


def _reject(kind: str, index: int, exc: Exception) -> RejectedRecord:
    code = getattr(exc, "code", type(exc).__name__)
    logger.warning("record_rejected", extra={
        "record_kind": kind,
        "record_index": index,
        "error_code": code,
        "error_message": str(exc),
    })
    return RejectedRecord(kind=kind, index=index, code=code, message=str(exc))


def snapshots_from_records(
    contract_records: Iterable[Mapping[str, Any]],
    invoice_records: Iterable[Mapping[str, Any]],
) -> LoadResult:
    """
    Group flat contract and invoice records into contract snapshots.

    Postconditions:
        - Snapshots keep the order of ``contract_records``.
        - Invoices keep their input order within each snapshot.
        - Malformed records and invoices referencing an unknown contract are
          returned in ``rejected`` and logged.
    """
    rejected: list[RejectedRecord] = []
    contracts: list[Contract] = []
    for index, record in enumerate(contract_records):
        try:
            contracts.append(contract_from_record(record))
        except (InvoiceEngineError, KeyError, ValueError, TypeError) as exc:
            rejected.append(_reject("contract", index, exc))

    by_contract: dict[str, list[Invoice]] = {str(c.contract_id): [] for c in contracts}
    for index, record in enumerate(invoice_records):
        try:
            invoice = invoice_from_record(record)
        except (InvoiceEngineError, KeyError, ValueError, TypeError) as exc:
            rejected.append(_reject("invoice", index, exc))
            continue
        bucket = by_contract.get(str(invoice.contract_id))
        if bucket is None:
            rejected.append(_reject(
                "invoice", index,
                KeyError(f"unknown contract {invoice.contract_id}"),
            ))
            continue
        bucket.append(invoice)

    snapshots = tuple(
        ContractSnapshot(contract=c, invoices=tuple(by_contract[str(c.contract_id)]))
        for c in contracts
    )

    logger.info("snapshots_loaded", extra={
        "contract_count": len(snapshots),
        "invoice_count": sum(len(s.invoices) for s in snapshots),
        "rejected_count": len(rejected),
    })

    return LoadResult(snapshots=snapshots, rejected=tuple(rejected))


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def render_to_dict(obj: object) -> dict | list | str | int | float | bool | None:
    """
    Convert any domain or result dataclass to plain JSON-safe data.

    Handles:
    - Decimal -> str (preserving precision)
    - UUID -> str
    - date -> ISO format string
    - Enum -> .value
    - Nested frozen dataclasses -> nested dicts
    - Tuples -> lists
    - None preserved
    """
    if obj is None:
        return None
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, UUID):
        return str(obj)
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, (list, tuple)):
        return [render_to_dict(item) for item in obj]
    if isinstance(obj, dict):
        return {
            (k.value if isinstance(k, Enum) else str(k)): render_to_dict(v)
            for k, v in obj.items()
        }
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: render_to_dict(getattr(obj, f.name))
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, (str, int, float, bool)):
        return obj
    return str(obj)
