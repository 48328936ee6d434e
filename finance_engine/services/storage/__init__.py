"""
Storage Services Package

Provides abstract interfaces for the engine's collaborators (expense ledger,
plan history, audit log) and in-memory implementations of each.
"""

from finance_engine.services.storage.interface import (
    AuditStorageInterface,
    BudgetPlanStoreInterface,
    DuplicateError,
    ExpenseLedgerInterface,
    NotFoundError,
    PlanAlreadyExistsError,
    StorageError,
)
from finance_engine.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryExpenseLedger,
    InMemoryPlanStore,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "BudgetPlanStoreInterface",
    "ExpenseLedgerInterface",
    # Exceptions
    "DuplicateError",
    "NotFoundError",
    "PlanAlreadyExistsError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryExpenseLedger",
    "InMemoryPlanStore",
]
