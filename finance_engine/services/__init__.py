"""Services package."""

from finance_engine.services.storage import (
    AuditStorageInterface,
    BudgetPlanStoreInterface,
    DuplicateError,
    ExpenseLedgerInterface,
    InMemoryAuditStorage,
    InMemoryExpenseLedger,
    InMemoryPlanStore,
    NotFoundError,
    PlanAlreadyExistsError,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "BudgetPlanStoreInterface",
    "DuplicateError",
    "ExpenseLedgerInterface",
    "InMemoryAuditStorage",
    "InMemoryExpenseLedger",
    "InMemoryPlanStore",
    "NotFoundError",
    "PlanAlreadyExistsError",
    "StorageError",
]
