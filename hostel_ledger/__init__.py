"""
Hostel monthly fee ledger.

Generates per-student monthly fee records, rolls unpaid balances forward,
reconciles payments, adjustments and refunds, and propagates corrections
into later billing periods.
"""

__version__ = "1.4.0"
