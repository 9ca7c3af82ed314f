"""
Paytrack - Payment Ledger Core

The aggregation and reconciliation engine behind a personal/small-business
payment ledger: payments are entered against calendar days, rolled up into
weeks and months, and replayed against a remote store after offline edits.

DESIGN PRINCIPLES:
1. Totals are derived, never set by callers
2. Local writes are applied immediately and synced later
3. No silent data loss in the sync queue
4. Every mutation is auditable
5. The remote store is swappable
"""

__version__ = "1.0.0"
__author__ = "Paytrack Team"
