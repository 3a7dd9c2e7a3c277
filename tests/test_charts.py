"""Tests for dashboard figures."""

from decimal import Decimal

from church_ledger.models.report import BreakdownItem, MonthlyTotal
from church_ledger.reports.charts import income_breakdown_chart, monthly_income_expense_chart


class TestCharts:
    """plotly figures."""

    def test_monthly_chart_traces(self):
        monthly = [MonthlyTotal(month="Jan"), MonthlyTotal(month="Feb", income=Decimal("100"), expenses=Decimal("40"))]
        fig = monthly_income_expense_chart(monthly)
        assert [trace.name for trace in fig.data] == ["Income", "Expenses"]
        assert list(fig.data[0].y) == [0.0, 100.0]
        assert fig.layout.barmode == "group"

    def test_monthly_chart_without_data(self):
        fig = monthly_income_expense_chart([MonthlyTotal(month="Jan")])
        assert fig.layout.title.text == "No data to display"
        assert len(fig.data) == 0

    def test_breakdown_chart_is_horizontal(self):
        items = [BreakdownItem(name="Offerings", value=Decimal("10")), BreakdownItem(name="Tithes", value=Decimal("5"))]
        fig = income_breakdown_chart(items)
        assert fig.data[0].orientation == "h"
        assert list(fig.data[0].y) == ["Offerings", "Tithes"]

    def test_breakdown_chart_without_data(self):
        assert income_breakdown_chart([]).layout.title.text == "No data to display"
