"""Shared-bill settlement package."""

from finance_engine.settlement.resolver import (
    active_bills,
    compute_balances,
    resolve_settlements,
)

__all__ = [
    "active_bills",
    "compute_balances",
    "resolve_settlements",
]
