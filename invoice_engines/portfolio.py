"""
invoice_engines.portfolio -- Dashboard headline figures across many contracts.

Responsibility:
    Aggregate contract snapshots (optionally filtered by project type) into
    the awarded / submitted / collected / under-review headline figures,
    per-status totals and retention held.  Also provides the dashboard
    drilldowns: project type list, status-card drilldown and the per-contract
    submission summary.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Builds on
    ``contract_rollup.rollup_contract``; never re-derives stored invoice
    amounts.

Invariants enforced:
    - Totals are commutative sums: reordering the input snapshots never
      changes the result.
    - ``None``, ``"Overall"`` (any case) and unknown project types all mean
      "no filter".
    - ``collected_value`` is always VAT-inclusive and net of retention,
      independent of ``vat_mode``.
    - ``unit_mode`` is echoed, never applied; scaling to millions belongs to
      the presentation layer.

Failure modes:
    - None for well-formed snapshots.  Invoices pointing at another
      contract are skipped by the rollup and reported there.
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from invoice_config.schema import RateConfig
from invoice_engines.contract_rollup import ContractRollup, rollup_contract
from invoice_engines.derivation import with_vat
from invoice_engines.tracer import traced_engine
from invoice_kernel.domain.amounts import ZERO, percentage, ratio, sum_amounts
from invoice_kernel.domain.models import (
    Contract,
    ContractSnapshot,
    InvoiceStatus,
    identifier_sort_key,
)
from invoice_kernel.logging_config import get_logger

logger = get_logger("engines.portfolio")

OVERALL = "Overall"

UNDER_REVIEW_STATUSES = (InvoiceStatus.PMD, InvoiceStatus.PMT, InvoiceStatus.FINANCE)


class VatMode(str, Enum):
    """Which figure the dashboard headline shows."""

    EXCLUSIVE = "exclusive"
    INCLUSIVE = "inclusive"


class UnitMode(str, Enum):
    """Presentation unit requested by the caller."""

    FULL = "full"
    MILLIONS = "millions"


@dataclass(frozen=True)
class StatusTotal:
    """Invoices currently in one status, VAT-inclusive and exclusive."""

    status: InvoiceStatus
    with_vat: Decimal = ZERO
    without_vat: Decimal = ZERO
    invoice_count: int = 0

    @property
    def label(self) -> str:
        return self.status.label


def _empty_status_totals() -> dict[InvoiceStatus, StatusTotal]:
    return {s: StatusTotal(status=s) for s in InvoiceStatus}


@dataclass(frozen=True)
class PortfolioSummary:
    """
    Headline figures for a (possibly filtered) set of contracts.

    ``*_display`` fields hold the value picked by ``vat_mode``.
    ``collection_percentage`` is a fraction; scaling to percent is left to
    the presentation layer.
    """

    awarded_value: Decimal = ZERO
    awarded_value_with_vat: Decimal = ZERO
    awarded_display: Decimal = ZERO
    submitted_value: Decimal = ZERO
    submitted_value_with_vat: Decimal = ZERO
    submitted_display: Decimal = ZERO
    collected_value: Decimal = ZERO
    collection_percentage: Decimal = ZERO
    status_totals: dict[InvoiceStatus, StatusTotal] = field(default_factory=_empty_status_totals)
    retention_held: Decimal = ZERO
    project_types: tuple[str, ...] = ()
    project_type_filter: str | None = None
    vat_mode: VatMode = VatMode.EXCLUSIVE
    unit_mode: UnitMode = UnitMode.FULL
    contract_rollups: tuple[ContractRollup, ...] = ()

    @property
    def contract_count(self) -> int:
        return len(self.contract_rollups)

    @property
    def under_review_with_vat(self) -> Decimal:
        """Invoices not yet collected (PMD + PMT + FINANCE), VAT-inclusive."""
        return sum_amounts(self.status_totals[s].with_vat for s in UNDER_REVIEW_STATUSES)

    @property
    def under_review_without_vat(self) -> Decimal:
        return sum_amounts(self.status_totals[s].without_vat for s in UNDER_REVIEW_STATUSES)


@dataclass(frozen=True)
class SubmissionRow:
    """One line of the submission summary table."""

    contract_id: str | int
    contract_number: str
    short_description: str | None
    contract_value: Decimal
    total_invoice_amount: Decimal
    submitted_percentage: Decimal


def _contract_order(contract: Contract) -> tuple:
    return (
        identifier_sort_key(contract.contract_number),
        identifier_sort_key(contract.contract_id),
    )


def project_types(snapshots: Iterable[ContractSnapshot]) -> tuple[str, ...]:
    """Distinct non-empty project types, sorted."""
    return tuple(sorted({
        s.contract.project_type.strip()
        for s in snapshots
        if s.contract.project_type and s.contract.project_type.strip()
    }))


def resolve_project_type_filter(
    project_type: str | None,
    available: Sequence[str],
) -> str | None:
    """Normalize a filter value; ``None`` means "no filter"."""
    if project_type is None:
        return None
    wanted = project_type.strip()
    if not wanted or wanted.lower() == OVERALL.lower():
        return None
    if wanted not in available:
        logger.debug("project_type_filter_ignored", extra={"project_type": wanted})
        return None
    return wanted


def filter_by_project_type(
    snapshots: Iterable[ContractSnapshot],
    project_type: str | None,
) -> tuple[ContractSnapshot, ...]:
    """Snapshots whose contract has ``project_type``; all of them for no filter."""
    snapshots = tuple(snapshots)
    wanted = resolve_project_type_filter(project_type, project_types(snapshots))
    if wanted is None:
        return snapshots
    return tuple(s for s in snapshots if s.contract.project_type.strip() == wanted)


@traced_engine(
    "portfolio",
    "1.0",
    fingerprint_fields=("snapshots", "project_type_filter", "vat_mode", "rates"),
)
def aggregate_portfolio(
    snapshots: Iterable[ContractSnapshot],
    project_type_filter: str | None = None,
    vat_mode: VatMode = VatMode.EXCLUSIVE,
    unit_mode: UnitMode = UnitMode.FULL,
    rates: RateConfig | None = None,
) -> PortfolioSummary:
    """
    Aggregate contract snapshots into dashboard headline figures.

    Postconditions:
        - ``collection_percentage == collected / submitted_with_vat`` as an
          unscaled ratio (0.25 for a quarter), 0 when nothing was submitted.
        - ``project_types`` is computed from the unfiltered input.
        - ``contract_rollups`` are ordered by contract number.
    """
    t0 = time.monotonic()
    rates = rates or RateConfig()
    vat_mode = VatMode(vat_mode)
    unit_mode = UnitMode(unit_mode)

    snapshots = tuple(snapshots)
    available = project_types(snapshots)
    applied = resolve_project_type_filter(project_type_filter, available)
    selected = filter_by_project_type(snapshots, applied)

    rollups = tuple(sorted(
        (rollup_contract(s.contract, s.invoices, rates.vat_rate) for s in selected),
        key=lambda r: _contract_order(r.contract),
    ))

    status_totals: dict[InvoiceStatus, StatusTotal] = {}
    for status in InvoiceStatus:
        members = [i for r in rollups for i in r.rows if i.status is status]
        status_totals[status] = StatusTotal(
            status=status,
            with_vat=sum_amounts(i.amount_with_vat for i in members),
            without_vat=sum_amounts(i.amount for i in members),
            invoice_count=len(members),
        )

    awarded = sum_amounts(r.contract.contract_value for r in rollups)
    awarded_with_vat = sum_amounts(
        with_vat(r.contract.contract_value, rates.vat_rate) for r in rollups
    )
    submitted = sum_amounts(r.total_submitted for r in rollups)
    submitted_with_vat = sum_amounts(r.total_submitted_with_vat for r in rollups)
    collected = sum_amounts(r.total_received for r in rollups)
    inclusive = vat_mode is VatMode.INCLUSIVE

    summary = PortfolioSummary(
        awarded_value=awarded,
        awarded_value_with_vat=awarded_with_vat,
        awarded_display=awarded_with_vat if inclusive else awarded,
        submitted_value=submitted,
        submitted_value_with_vat=submitted_with_vat,
        submitted_display=submitted_with_vat if inclusive else submitted,
        collected_value=collected,
        collection_percentage=ratio(collected, submitted_with_vat),
        status_totals=status_totals,
        retention_held=sum_amounts(r.retention_held for r in rollups),
        project_types=available,
        project_type_filter=applied,
        vat_mode=vat_mode,
        unit_mode=unit_mode,
        contract_rollups=rollups,
    )

    duration_ms = round((time.monotonic() - t0) * 1000, 2)
    logger.info("portfolio_aggregated", extra={
        "contract_count": summary.contract_count,
        "project_type_filter": applied,
        "vat_mode": vat_mode.value,
        "awarded_value": str(summary.awarded_value),
        "submitted_value": str(summary.submitted_value),
        "collected_value": str(summary.collected_value),
        "collection_percentage": str(summary.collection_percentage),
        "duration_ms": duration_ms,
    })

    return summary


def contracts_in_status(
    snapshots: Iterable[ContractSnapshot],
    status: InvoiceStatus | str,
) -> tuple[ContractSnapshot, ...]:
    """
    Status-card drilldown.

    Each contract keeps only its invoices in ``status``; contracts left
    without invoices are dropped.  Ordered by contract number.
    """
    wanted = InvoiceStatus.parse(status)
    result = []
    for snapshot in snapshots:
        invoices = tuple(i for i in snapshot.invoices if i.status is wanted)
        if invoices:
            result.append(ContractSnapshot(contract=snapshot.contract, invoices=invoices))
    return tuple(sorted(result, key=lambda s: _contract_order(s.contract)))


def submission_summary(snapshots: Iterable[ContractSnapshot]) -> tuple[SubmissionRow, ...]:
    """Per-contract invoiced amount against contract value, by contract number."""
    rows = []
    for snapshot in snapshots:
        contract = snapshot.contract
        total = sum_amounts(
            i.amount for i in snapshot.invoices
            if str(i.contract_id) == str(contract.contract_id)
        )
        rows.append(SubmissionRow(
            contract_id=contract.contract_id,
            contract_number=contract.contract_number,
            short_description=contract.short_description,
            contract_value=contract.contract_value,
            total_invoice_amount=total,
            submitted_percentage=percentage(total, contract.contract_value),
        ))
    return tuple(sorted(rows, key=lambda r: (
        identifier_sort_key(r.contract_number),
        identifier_sort_key(r.contract_id),
    )))
