"""
Data Models Package

This package contains all Pydantic models used by the finance engine.
All data flowing through the engine must conform to these schemas.
"""

from finance_engine.models.records import (
    ExpenseRecord,
    IncomeRecord,
    IncomeStatus,
    Money,
    Recurrence,
    month_key,
)
from finance_engine.models.splits import (
    Participant,
    ParticipantBalance,
    Settlement,
    SettlementReport,
    SplitBill,
    SplitType,
    equal_shares,
)
from finance_engine.models.budget import (
    BucketStatus,
    BucketType,
    BudgetBucket,
    BudgetInsight,
    BudgetPolicy,
    CategoryBudget,
    DailyBudget,
    InsightType,
    MonthlyBudgetPlan,
    TransactionResult,
)
from finance_engine.models.insights import (
    AnomalyDetection,
    CashflowForecast,
    Frequency,
    InsightReport,
    PatternType,
    PredictiveBudget,
    Priority,
    RecurringSuggestion,
    SavingsOpportunity,
    Severity,
    SpendingPattern,
    Trend,
)
from finance_engine.models.validation import (
    ValidationIssue,
    ValidationResult,
)
from finance_engine.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger records
    "ExpenseRecord",
    "IncomeRecord",
    "IncomeStatus",
    "Money",
    "Recurrence",
    "month_key",
    # Shared bills
    "Participant",
    "ParticipantBalance",
    "Settlement",
    "SettlementReport",
    "SplitBill",
    "SplitType",
    "equal_shares",
    # Budget
    "BucketStatus",
    "BucketType",
    "BudgetBucket",
    "BudgetInsight",
    "BudgetPolicy",
    "CategoryBudget",
    "DailyBudget",
    "InsightType",
    "MonthlyBudgetPlan",
    "TransactionResult",
    # Insights
    "AnomalyDetection",
    "CashflowForecast",
    "Frequency",
    "InsightReport",
    "PatternType",
    "PredictiveBudget",
    "Priority",
    "RecurringSuggestion",
    "SavingsOpportunity",
    "Severity",
    "SpendingPattern",
    "Trend",
    # Validation
    "ValidationIssue",
    "ValidationResult",
    # Audit
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
