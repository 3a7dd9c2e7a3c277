"""
Church Ledger - Source Package

Financial record keeping for a single congregation: income, expense
and tithe entry, a chart of accounts with yearly budgets, member
management, dashboards and exportable budget-vs-actuals reports.

DESIGN PRINCIPLES:
1. Realized amounts are always derived, never stored
2. Aggregation is a pure function over fetched collections
3. Every mutation is logged with the user who made it
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Church Ledger Team"
