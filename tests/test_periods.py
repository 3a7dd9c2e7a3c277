"""Tests for the period aggregators."""

from datetime import date
from decimal import Decimal

from church_ledger.models.ledger import IncomeCategory
from church_ledger.reports.periods import (
    account_activity,
    account_realized_for_year,
    filter_by_date_range,
    financial_summary,
    income_breakdown,
    member_has_tithes,
    member_tithe_totals,
    member_tithes,
    month_bounds,
    monthly_totals,
    percent_of_budget,
    source_realized,
    source_transactions,
    sum_by_group_key,
)

from tests.builders import expense_record, income_record


class TestPrimitives:
    """Date filtering, grouping and percentages."""

    def test_filter_inclusive_at_both_ends(self):
        records = [
            income_record("A", date(2023, 12, 31), "1"),
            income_record("B", date(2024, 1, 1), "2"),
            income_record("C", date(2024, 12, 31), "3"),
            income_record("D", date(2025, 1, 1), "4"),
        ]
        kept = filter_by_date_range(records, date(2024, 1, 1), date(2024, 12, 31))
        assert [record.code for record in kept] == ["B", "C"]

    def test_filter_open_bounds(self):
        records = [income_record("A", date(2020, 1, 1), "1"), income_record("B", date(2030, 1, 1), "1")]
        assert len(filter_by_date_range(records)) == 2
        assert [r.code for r in filter_by_date_range(records, start=date(2025, 1, 1))] == ["B"]
        assert [r.code for r in filter_by_date_range(records, end=date(2025, 1, 1))] == ["A"]

    def test_group_key_excludes_missing(self):
        """Test that records without a key belong to no group."""
        records = [
            income_record("A", date(2024, 1, 1), "10", account_id="acc-1"),
            income_record("B", date(2024, 1, 2), "5", account_id="acc-1"),
            income_record("C", date(2024, 1, 3), "7"),
        ]
        assert sum_by_group_key(records, "account_id") == {"acc-1": Decimal("15")}

    def test_group_key_callable(self):
        records = [
            income_record("A", date(2024, 1, 1), "10"),
            income_record("B", date(2024, 2, 1), "5"),
        ]
        totals = sum_by_group_key(records, lambda record: f"{record.date:%b}")
        assert totals == {"Jan": Decimal("10"), "Feb": Decimal("5")}

    def test_percent_of_budget(self):
        assert percent_of_budget(Decimal("50000"), Decimal("600000")) == 8.33
        assert percent_of_budget(Decimal("50000"), Decimal("0")) == 0.0
        assert percent_of_budget(Decimal("0"), Decimal("100")) == 0.0

    def test_month_bounds_leap_year(self):
        assert month_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))


class TestDashboard:
    """Yearly summary and monthly buckets."""

    def _income(self):
        return [
            income_record("O", date(2024, 3, 3), "100"),
            income_record("T", date(2024, 3, 10), "50", category=IncomeCategory.TITHE, member_name="Jane Doe"),
            income_record("D", date(2024, 7, 1), "20", category=IncomeCategory.DONATION),
            income_record("X", date(2024, 9, 1), "10", category=IncomeCategory.OTHER),
            income_record("P", date(2023, 6, 1), "90"),
        ]

    def _expenses(self):
        return [
            expense_record("E1", date(2024, 3, 15), "30"),
            expense_record("E0", date(2023, 2, 1), "40"),
        ]

    def test_financial_summary(self):
        summary = financial_summary(self._income(), self._expenses(), 2024)
        assert summary.total_offerings == Decimal("100")
        assert summary.total_tithes == Decimal("50")
        assert summary.other_income == Decimal("30")
        assert summary.total_income == Decimal("180")
        assert summary.total_expenses == Decimal("30")
        assert summary.net_balance == Decimal("150")
        assert summary.prev_year_total_income == Decimal("90")
        assert summary.prev_year_total_expenses == Decimal("40")
        assert summary.balance_brought_forward == Decimal("50")
        assert summary.income_change_percent == 100.0

    def test_income_change_without_previous_year(self):
        """Test that growth from nothing has no percentage."""
        summary = financial_summary([income_record("O", date(2024, 1, 1), "100")], [], 2024)
        assert summary.income_change_percent is None

    def test_income_change_when_both_years_empty(self):
        assert financial_summary([], [], 2024).income_change_percent == 0.0

    def test_monthly_totals(self):
        buckets = monthly_totals(self._income(), self._expenses(), 2024)
        assert len(buckets) == 12
        assert [bucket.month for bucket in buckets][:3] == ["Jan", "Feb", "Mar"]
        assert buckets[2].income == Decimal("150")
        assert buckets[2].expenses == Decimal("30")
        assert buckets[0].income == Decimal("0")

    def test_income_breakdown(self):
        items = income_breakdown(financial_summary(self._income(), [], 2024))
        assert [(item.name, item.value) for item in items] == [
            ("Offerings", Decimal("100")),
            ("Tithes", Decimal("50")),
            ("Other", Decimal("30")),
        ]


class TestAccountsSourcesMembers:
    """Account, source and member aggregates."""

    def test_account_realized_for_year(self):
        income = [
            income_record("A", date(2024, 1, 1), "10", account_id="acc-1"),
            income_record("B", date(2023, 1, 1), "99", account_id="acc-1"),
        ]
        expenses = [expense_record("E", date(2024, 5, 1), "7", account_id="acc-2")]
        realized = account_realized_for_year(income, expenses, 2024)
        assert realized == {"acc-1": Decimal("10"), "acc-2": Decimal("7")}

    def test_account_activity_newest_first(self):
        income = [income_record("A", date(2024, 1, 1), "10", account_id="acc-1")]
        expenses = [
            expense_record("E", date(2024, 5, 1), "4", account_id="acc-1"),
            expense_record("F", date(2024, 6, 1), "1", account_id="other"),
        ]
        activity = account_activity("acc-1", income, expenses, 2024)
        assert [line.type for line in activity.lines] == ["Expense", "Income"]
        assert activity.lines[0].date == "May 1, 2024"
        assert activity.total_income == Decimal("10")
        assert activity.total_expenses == Decimal("4")
        assert activity.net_balance == Decimal("6")

    def test_source_realized_all_time(self, sunday_offerings):
        records = [
            income_record("A", date(2019, 1, 1), "10", source=sunday_offerings),
            income_record("B", date(2024, 1, 1), "15", source=sunday_offerings),
            income_record("C", date(2024, 1, 1), "99", account_id="acc-9"),
        ]
        assert source_realized(sunday_offerings.id, records) == Decimal("25")

    def test_source_transactions_newest_first(self, sunday_offerings):
        records = [
            income_record("A", date(2019, 1, 1), "10", source=sunday_offerings),
            income_record("B", date(2024, 1, 1), "15", source=sunday_offerings),
            income_record("C", date(2024, 6, 1), "99", account_id="acc-9"),
        ]
        assert [record.code for record in source_transactions(sunday_offerings.id, records)] == ["B", "A"]

    def test_member_tithes(self):
        income = [
            income_record("T1", date(2024, 1, 7), "10", category=IncomeCategory.TITHE, member_name="Jane Doe"),
            income_record("T2", date(2024, 2, 4), "15", category=IncomeCategory.TITHE, member_name="Jane Doe"),
            income_record("O1", date(2024, 3, 3), "50", member_name="Jane Doe"),
        ]
        assert [record.code for record in member_tithes("Jane Doe", income)] == ["T2", "T1"]
        assert member_tithes("John Doe", income) == []

    def test_member_tithe_totals_exact_name(self):
        """Test that tithes join members by exact full name."""
        income = [
            income_record("T1", date(2024, 1, 7), "10", category=IncomeCategory.TITHE, member_name="Jane Doe"),
            income_record("T2", date(2024, 2, 4), "15", category=IncomeCategory.TITHE, member_name="Jane Doe"),
            income_record("T3", date(2024, 2, 4), "5", category=IncomeCategory.TITHE, member_name="jane doe"),
            income_record("O1", date(2024, 2, 4), "50", member_name="Jane Doe"),
        ]
        assert member_tithe_totals(income) == {"Jane Doe": Decimal("25"), "jane doe": Decimal("5")}
        assert member_has_tithes("Jane Doe", income)
        assert not member_has_tithes("John Doe", income)
