"""Validation package."""

from finance_engine.validation.validator import SplitBillValidator

__all__ = ["SplitBillValidator"]
