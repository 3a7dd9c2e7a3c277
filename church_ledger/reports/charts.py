"""Plotly figures for the dashboard."""

from typing import Optional, Sequence

import plotly.graph_objects as go

from church_ledger.models.report import BreakdownItem, MonthlyTotal

INCOME_COLOR = "#2ca02c"
EXPENSE_COLOR = "#d62728"


def _empty_figure() -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title="No data to display")
    return fig


def monthly_income_expense_chart(
    monthly: Sequence[MonthlyTotal],
    title: Optional[str] = None,
    currency: str = "XAF",
) -> go.Figure:
    """
    Grouped income/expense bars, one group per month.

    A year with no postings at all renders the placeholder figure.
    """
    if not monthly or not any(bucket.income or bucket.expenses for bucket in monthly):
        return _empty_figure()

    months = [bucket.month for bucket in monthly]
    fig = go.Figure()
    fig.add_trace(go.Bar(
        name="Income", x=months, y=[float(bucket.income) for bucket in monthly],
        marker_color=INCOME_COLOR,
    ))
    fig.add_trace(go.Bar(
        name="Expenses", x=months, y=[float(bucket.expenses) for bucket in monthly],
        marker_color=EXPENSE_COLOR,
    ))
    fig.update_layout(
        title=title or "Monthly Income vs Expenses",
        barmode="group",
        xaxis_title="Month",
        yaxis_title=f"Amount ({currency})",
    )
    return fig


def income_breakdown_chart(
    items: Sequence[BreakdownItem],
    title: Optional[str] = None,
) -> go.Figure:
    """Horizontal bars of income by category."""
    if not items or not any(item.value for item in items):
        return _empty_figure()

    fig = go.Figure(go.Bar(
        x=[float(item.value) for item in items],
        y=[item.name for item in items],
        orientation="h",
        marker_color=INCOME_COLOR,
    ))
    fig.update_layout(
        title=title or "Income Breakdown",
        xaxis_title="Amount",
        yaxis_title="Category",
    )
    return fig
