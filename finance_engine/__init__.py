"""
Finance Engine - Source Package

The computational core of a personal-finance tracker: shared-bill
settlement, monthly budget buckets, and insights over expense history.

DESIGN PRINCIPLES:
1. Pure functions over an immutable snapshot
2. Validate at the boundary, never mid-algorithm
3. Not enough data is an answer, not an error
4. Money is Decimal, compared to the cent
5. Collaborators (rates, ledger, plan history) are injected
"""

__version__ = "1.0.0"
__author__ = "Finance Engine Team"
