"""
Runtime Verification Module

Checks student ledgers against the enrollment invariants.
"""

from ccrm.verification.ledger_invariants import (
    InvariantMonitor,
    InvariantViolation,
    InvariantViolationType,
    assert_ledger_invariants,
    check_ledger,
)

__all__ = [
    "InvariantMonitor",
    "InvariantViolation",
    "InvariantViolationType",
    "assert_ledger_invariants",
    "check_ledger",
]
