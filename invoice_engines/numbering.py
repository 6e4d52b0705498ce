"""Contract-scoped invoice numbering: ``"<CWO> INV-C-001"``, ``"<CWO> INV-C-002"``, ..."""

from __future__ import annotations

import re
from collections.abc import Iterable

from invoice_kernel.logging_config import get_logger

logger = get_logger("engines.numbering")

INVOICE_SERIES = "INV-C-"

_SEQUENCE_PATTERN = re.compile(r"INV-C-(\d+)$")


def sequence_of(invoice_number: str) -> int | None:
    """Trailing ``INV-C-<digits>`` sequence of a number, or None."""
    match = _SEQUENCE_PATTERN.search(invoice_number.strip())
    return int(match.group(1)) if match else None


def next_invoice_number(
    contract_reference: str | None,
    existing_numbers: Iterable[str],
) -> str:
    """
    Next number in the contract's series.

    One more than the highest existing sequence; numbers outside the series
    are ignored.  Sequences are zero-padded to three digits and widen past 999.
    """
    sequences = [s for s in (sequence_of(n) for n in existing_numbers if n) if s is not None]
    next_sequence = max(sequences, default=0) + 1

    reference = (contract_reference or "").strip()
    prefix = f"{reference} " if reference else ""
    number = f"{prefix}{INVOICE_SERIES}{next_sequence:03d}"

    logger.debug("invoice_number_allocated", extra={
        "contract_reference": reference,
        "invoice_number": number,
        "existing_count": len(sequences),
    })
    return number


def find_duplicate(invoice_number: str, existing_numbers: Iterable[str]) -> bool:
    """True if ``invoice_number`` is already used (exact match)."""
    return any(invoice_number == existing for existing in existing_numbers)
