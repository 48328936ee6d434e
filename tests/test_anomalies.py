"""
Tests for the anomaly detector.
"""

import pytest
from datetime import timedelta
from decimal import Decimal

from finance_engine.analytics import detect_anomalies
from finance_engine.models.insights import Severity

from factories import AS_OF, daily_expenses, expense


def dining_history(outlier, outlier_days_ago=2):
    """Twenty old Dining expenses alternating 15/25, plus one recent outlier."""
    old = [
        expense(15 if i % 2 else 25, category="Dining", on=AS_OF - timedelta(days=60 + i))
        for i in range(20)
    ]
    return old + [expense(outlier, category="Dining", on=AS_OF - timedelta(days=outlier_days_ago))]


class TestDetectAnomalies:
    """Tests for outlier detection."""

    def test_medium_severity_outlier(self):
        """35 sits between mean+2 sigma and mean+3 sigma: medium."""
        anomalies = detect_anomalies(dining_history(35), as_of=AS_OF)

        assert len(anomalies) == 1
        anomaly = anomalies[0]
        assert anomaly.expense.amount == Decimal("35")
        assert anomaly.severity == Severity.MEDIUM
        assert abs(anomaly.comparison_value - Decimal("20.714")) < Decimal("0.001")
        assert anomaly.reason == (
            "This Dining expense is 69% higher than your typical Dining spending."
        )

    def test_dining_outlier_of_35(self):
        """25 Dining expenses averaging 20 with a recent 35 is a medium anomaly."""
        history = [
            expense(15 if i % 2 else 25, category="Dining", on=AS_OF - timedelta(days=60 + i))
            for i in range(24)
        ]
        history.append(expense(20, category="Dining", on=AS_OF - timedelta(days=90)))
        history.append(expense(35, category="Dining", on=AS_OF - timedelta(days=3)))

        anomalies = detect_anomalies(history, as_of=AS_OF)
        assert [(a.expense.amount, a.severity) for a in anomalies] == [
            (Decimal("35"), Severity.MEDIUM),
        ]
        assert anomalies[0].reason.startswith("This Dining expense is 70% higher")

    def test_high_severity_outlier(self):
        """60 is beyond mean+3 sigma: high."""
        anomalies = detect_anomalies(dining_history(60), as_of=AS_OF)
        assert [a.severity for a in anomalies] == [Severity.HIGH]

    def test_old_outliers_are_not_reported(self):
        """Only the trailing 30 days are checked."""
        assert detect_anomalies(dining_history(60, outlier_days_ago=40), as_of=AS_OF) == []

    def test_below_total_floor(self):
        """Fewer than 20 records overall yields nothing."""
        history = dining_history(60)[-19:]
        assert detect_anomalies(history, as_of=AS_OF) == []

    def test_thin_category_is_skipped(self):
        """A category with fewer than 5 records is never flagged."""
        history = daily_expenses(20, amount=10)
        history += [expense(5, category="Travel", on=AS_OF - timedelta(days=90 + i)) for i in range(3)]
        history.append(expense(5000, category="Travel", on=AS_OF))
        assert detect_anomalies(history, as_of=AS_OF) == []

    def test_sorted_high_before_medium(self):
        """High-severity findings come first."""
        history = dining_history(35)
        history += [
            expense(15 if i % 2 else 25, category="Bars", on=AS_OF - timedelta(days=60 + i))
            for i in range(20)
        ]
        history.append(expense(60, category="Bars", on=AS_OF - timedelta(days=1)))

        anomalies = detect_anomalies(history, as_of=AS_OF)
        assert [a.severity for a in anomalies] == [Severity.HIGH, Severity.MEDIUM]
        assert anomalies[0].expense.category == "Bars"

    def test_identical_amounts_have_no_outliers(self):
        """Zero spread means nothing exceeds the mean."""
        assert detect_anomalies(daily_expenses(25, amount=10), as_of=AS_OF) == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
