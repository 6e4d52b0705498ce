"""
Invoice Kernel

Pure domain layer for partial-invoice tracking against awarded contracts:
- Immutable contract, invoice and supplier snapshots
- Decimal-exact 2-place amounts
- Typed validation errors with machine-readable codes
- Structured JSON logging
"""

__version__ = "0.1.0"
