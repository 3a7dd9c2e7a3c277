"""
Streamlit Frontend for Church Ledger

This is the interface the treasurer and church leaders use to keep the
books: chart of accounts, budgeted sources, income, tithes, expenses,
members and the exportable reports.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Every change is made by a named user
3. Clear error messages in simple language
4. Reports always recomputed from the stored ledger
"""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Optional

import pandas as pd
import streamlit as st

from church_ledger.config import get_settings, validate_all_settings
from church_ledger.ledger import LedgerError, LedgerService, create_app_components
from church_ledger.models import (
    Account,
    AccountType,
    ExpenseCategory,
    ExpenseRecord,
    ExpenseSource,
    IncomeCategory,
    IncomeRecord,
    IncomeSource,
    LedgerSnapshot,
    Member,
    UserContext,
)
from church_ledger.reports import (
    REPORT_NAMES,
    NoDataToExportError,
    account_activity,
    account_realized_for_year,
    flatten_report_rows,
    format_currency,
    income_breakdown_chart,
    member_tithe_totals,
    monthly_income_expense_chart,
    pdf_file_name,
    render_budget_report_pdf,
    render_flat_pdf,
    spreadsheet_file_name,
    to_spreadsheet_bytes,
)
from church_ledger.reports.exporters import PDF_MIME, SPREADSHEET_MIME
from church_ledger.services.storage import StorageError


# Page configuration
st.set_page_config(
    page_title="Church Ledger",
    page_icon="⛪",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .big-number {
        font-size: 2.0em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    try:
        return create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        return create_app_components(use_storage=False)


def current_user() -> Optional[UserContext]:
    email = st.session_state.get("user_email", "").strip()
    if not email or "@" not in email:
        return None
    return UserContext(user_id=email.lower(), email=email)


def money(value) -> str:
    return format_currency(value, get_settings().app.currency)


def main():
    """Main application entry point."""
    service, _ = get_components()
    settings = get_settings().app

    # Sidebar navigation
    st.sidebar.title(f"⛪ {settings.church_name}")
    st.sidebar.text_input("Your email", key="user_email", help="Changes are recorded under this address")
    if current_user() is None:
        st.sidebar.warning("Enter your email to make changes.")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "📒 Accounts", "💵 Income", "🧾 Expenses", "👥 Members", "📑 Reports", "⚙️ Settings"],
        index=0,
    )

    if page == "⚙️ Settings":
        render_settings_page(service)
        return

    try:
        snapshot = run_async(service.load_snapshot())
    except StorageError as e:
        st.error(f"Could not load the ledger: {e}")
        return

    # Route to appropriate page
    if page == "📊 Dashboard":
        render_dashboard_page(service, snapshot)
    elif page == "📒 Accounts":
        render_accounts_page(service, snapshot)
    elif page == "💵 Income":
        render_income_page(service, snapshot)
    elif page == "🧾 Expenses":
        render_expenses_page(service, snapshot)
    elif page == "👥 Members":
        render_members_page(service, snapshot)
    elif page == "📑 Reports":
        render_reports_page(service, snapshot)


def year_options() -> list[int]:
    this_year = date.today().year
    return [this_year - offset for offset in range(get_settings().app.dashboard_years)]


def run_mutation(coro, success: str) -> bool:
    """Run a service call and report the outcome in plain language."""
    try:
        run_async(coro)
    except (LedgerError, StorageError, ValueError) as e:
        st.error(str(e))
        return False
    st.success(success)
    return True


# =============================================================================
# DASHBOARD
# =============================================================================

def render_dashboard_page(service: LedgerService, snapshot: LedgerSnapshot):
    st.title("📊 Dashboard")
    year = st.selectbox("Year", year_options())

    summary, monthly, breakdown = run_async(service.dashboard(year, snapshot=snapshot))

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total Income", money(summary.total_income),
                delta=None if summary.income_change_percent is None else f"{summary.income_change_percent:.1f}%")
    col2.metric("Total Expenses", money(summary.total_expenses))
    col3.metric("Net Balance", money(summary.net_balance))
    col4.metric("Brought Forward", money(summary.balance_brought_forward))

    col1, col2 = st.columns([2, 1])
    with col1:
        st.plotly_chart(monthly_income_expense_chart(monthly, currency=service.settings.currency),
                        use_container_width=True)
    with col2:
        st.plotly_chart(income_breakdown_chart(breakdown), use_container_width=True)

    report = run_async(service.integrity_report(snapshot=snapshot))
    if not report.is_clean:
        with st.expander(f"⚠️ {len(report.issues)} ledger issue(s) need review"):
            for issue in report.issues:
                st.write(f"**{issue.severity.upper()}** {issue.message}")


# =============================================================================
# ACCOUNTS
# =============================================================================

def render_accounts_page(service: LedgerService, snapshot: LedgerSnapshot):
    st.title("📒 Chart of Accounts")
    year = st.selectbox("Budget year", year_options())
    realized = account_realized_for_year(snapshot.income_records, snapshot.expense_records, year)

    st.dataframe(pd.DataFrame([
        {
            "Code": account.code,
            "Name": account.name,
            "Type": account.type.value,
            "Budget": money(account.budget_for(year)),
            "Realized": money(realized.get(account.id, 0)),
        }
        for account in snapshot.accounts
    ]), use_container_width=True, hide_index=True)

    with st.form("add_account"):
        st.markdown("### Add account")
        code = st.text_input("Code")
        name = st.text_input("Name")
        account_type = st.selectbox("Type", list(AccountType), format_func=lambda t: t.value)
        if st.form_submit_button("Create account"):
            try:
                account = Account(code=code, name=name, type=account_type)
            except ValueError as e:
                st.error(str(e))
            else:
                run_mutation(service.add_account(account, current_user()), f"Created account {code}.")

    if not snapshot.accounts:
        return

    account = st.selectbox("Account", snapshot.accounts, format_func=lambda a: a.label)
    with st.form("set_budget"):
        st.markdown(f"### Budget for {year}")
        amount = st.number_input("Amount", min_value=0.0, value=float(account.budget_for(year)), step=1000.0)
        if st.form_submit_button("Save budget"):
            run_mutation(
                service.set_budget_for_year(account.id, year, Decimal(str(amount)), current_user()),
                f"Budget for {year} saved.",
            )

    activity = account_activity(account.id, snapshot.income_records, snapshot.expense_records, year)
    st.markdown(f"### Activity in {year}")
    st.write(
        f"Income {money(activity.total_income)} · Expenses {money(activity.total_expenses)} · "
        f"Net {money(activity.net_balance)}"
    )
    if activity.lines:
        st.dataframe(pd.DataFrame([line.model_dump() for line in activity.lines]),
                     use_container_width=True, hide_index=True)

    if st.button("Delete account", type="secondary"):
        run_mutation(service.delete_account(account.id, current_user()), "Account deleted.")


# =============================================================================
# INCOME & EXPENSES
# =============================================================================

def _accounts_of(snapshot: LedgerSnapshot, account_type: AccountType) -> list[Account]:
    return [account for account in snapshot.accounts if account.type == account_type]


def render_income_page(service: LedgerService, snapshot: LedgerSnapshot):
    st.title("💵 Income")
    income_accounts = _accounts_of(snapshot, AccountType.INCOME)

    with st.form("add_income_source"):
        st.markdown("### New income source")
        code = st.text_input("Code")
        name = st.text_input("Name")
        category = st.selectbox("Category", [c for c in IncomeCategory if c != IncomeCategory.TITHE],
                                format_func=lambda c: c.value)
        account = st.selectbox("Account", income_accounts, format_func=lambda a: a.label)
        if st.form_submit_button("Create income source"):
            if account is None:
                st.error("Create an Income account first.")
            else:
                try:
                    source = IncomeSource(code=code, transaction_name=name, category=category, account_id=account.id)
                except ValueError as e:
                    st.error(str(e))
                else:
                    run_mutation(service.add_income_source(source, current_user()), f'Created "{name}".')

    if snapshot.income_sources:
        with st.form("add_income_record"):
            st.markdown("### Record income")
            source = st.selectbox("Source", snapshot.income_sources, format_func=lambda s: f"{s.code} - {s.name}")
            code = st.text_input("Transaction code")
            on_date = st.date_input("Date", value=date.today())
            amount = st.number_input("Amount", min_value=0.0, step=500.0)
            description = st.text_input("Description")
            if st.form_submit_button("Save income"):
                try:
                    record = IncomeRecord(
                        code=code, date=on_date, amount=Decimal(str(amount)),
                        transaction_name=source.name, category=source.category,
                        description=description or None,
                    )
                except ValueError as e:
                    st.error(str(e))
                else:
                    run_mutation(service.add_income_transaction(record, source, current_user()), "Income saved.")

    with st.form("add_tithe"):
        st.markdown("### Record tithe")
        member = st.selectbox("Member", snapshot.members, format_func=lambda m: m.full_name)
        code = st.text_input("Tithe code")
        on_date = st.date_input("Tithe date", value=date.today())
        amount = st.number_input("Tithe amount", min_value=0.0, step=500.0)
        if st.form_submit_button("Save tithe"):
            if member is None or amount <= 0 or not code:
                st.error("Choose a member, a code and an amount.")
            else:
                run_mutation(
                    service.add_tithe_transaction(member.full_name, Decimal(str(amount)), on_date, code,
                                                  current_user()),
                    "Tithe saved.",
                )

    _render_source_ledger(service, snapshot, snapshot.income_sources, key="income")
    _render_records(snapshot.income_records, "Income records")


def render_expenses_page(service: LedgerService, snapshot: LedgerSnapshot):
    st.title("🧾 Expenses")
    expense_accounts = _accounts_of(snapshot, AccountType.EXPENSE)

    with st.form("add_expense_source"):
        st.markdown("### New expense source")
        code = st.text_input("Code")
        name = st.text_input("Name")
        category = st.selectbox("Category", list(ExpenseCategory), format_func=lambda c: c.value)
        account = st.selectbox("Account", expense_accounts, format_func=lambda a: a.label)
        if st.form_submit_button("Create expense source"):
            if account is None:
                st.error("Create an Expense account first.")
            else:
                try:
                    source = ExpenseSource(code=code, expense_name=name, category=category, account_id=account.id)
                except ValueError as e:
                    st.error(str(e))
                else:
                    run_mutation(service.add_expense_source(source, current_user()), f'Created "{name}".')

    if snapshot.expense_sources:
        with st.form("add_expense_record"):
            st.markdown("### Record expense")
            source = st.selectbox("Source", snapshot.expense_sources, format_func=lambda s: f"{s.code} - {s.name}")
            code = st.text_input("Transaction code")
            on_date = st.date_input("Date", value=date.today())
            amount = st.number_input("Amount", min_value=0.0, step=500.0)
            payee = st.text_input("Payee")
            payment_method = st.selectbox("Payment method", ["Cash", "Bank Transfer", "Mobile Money", "Cheque"])
            if st.form_submit_button("Save expense"):
                try:
                    record = ExpenseRecord(
                        code=code, date=on_date, amount=Decimal(str(amount)),
                        expense_name=source.name, category=source.category,
                        payee=payee or None, payment_method=payment_method,
                    )
                except ValueError as e:
                    st.error(str(e))
                else:
                    run_mutation(service.add_expense_transaction(record, source, current_user()), "Expense saved.")

    _render_source_ledger(service, snapshot, snapshot.expense_sources, key="expense")
    _render_records(snapshot.expense_records, "Expense records")


def _render_source_ledger(service: LedgerService, snapshot: LedgerSnapshot, sources, key: str):
    if not sources:
        return
    st.markdown("### Source detail")
    source = st.selectbox("Show source", sources, format_func=lambda s: f"{s.code} - {s.name}",
                          key=f"{key}_source_detail")
    detail = run_async(service.source_ledger(source.id, snapshot=snapshot))
    st.metric("All-time total", money(detail.total))
    _render_records(detail.records, f"{detail.code} - {detail.name}")


def _render_records(records, heading: str):
    st.markdown(f"### {heading}")
    if not records:
        st.info("Nothing recorded yet.")
        return
    st.dataframe(pd.DataFrame([
        {
            "Date": record.date,
            "Code": record.code,
            "Name": record.display_name,
            "Member / Payee": record.counterpart or "N/A",
            "Amount": money(record.amount),
        }
        for record in records
    ]), use_container_width=True, hide_index=True)


# =============================================================================
# MEMBERS
# =============================================================================

def render_members_page(service: LedgerService, snapshot: LedgerSnapshot):
    st.title("👥 Members")
    totals = member_tithe_totals(snapshot.income_records)

    st.dataframe(pd.DataFrame([
        {"Full Name": member.full_name, "Total Tithes": money(totals.get(member.full_name, 0))}
        for member in snapshot.members
    ]), use_container_width=True, hide_index=True)

    with st.form("add_member"):
        full_name = st.text_input("Full name")
        if st.form_submit_button("Add member"):
            try:
                member = Member(full_name=full_name)
            except ValueError as e:
                st.error(str(e))
            else:
                run_mutation(service.add_member(member, current_user()), f'Added "{full_name}".')

    if snapshot.members:
        member = st.selectbox("Member", snapshot.members, format_func=lambda m: m.full_name)

        history = run_async(service.tithe_history(member.id, snapshot=snapshot))
        st.markdown(f"### Tithes of {history.full_name}")
        st.metric("Total tithes", money(history.total))
        if history.records:
            st.dataframe(pd.DataFrame([
                {"Date": record.date, "Code": record.code, "Amount": money(record.amount)}
                for record in history.records
            ]), use_container_width=True, hide_index=True)
        else:
            st.info("No tithes recorded for this member.")

        if st.button("Delete member"):
            run_mutation(service.delete_member(member.id, current_user()), f'Deleted "{member.full_name}".')


# =============================================================================
# REPORTS
# =============================================================================

def render_reports_page(service: LedgerService, snapshot: LedgerSnapshot):
    st.title("📑 Reports")
    currency = service.settings.currency
    church = service.settings.church_name

    st.markdown("### Budget vs. Actuals")
    col1, col2, col3 = st.columns(3)
    year = col1.selectbox("Budget year", year_options())
    start = col2.date_input("From", value=date(year, 1, 1))
    end = col3.date_input("To", value=date(year, 12, 31))

    rows = run_async(service.budget_report(year, start, end, snapshot=snapshot))
    title = f"Budget vs Actuals {year}"
    _download_buttons(
        title,
        lambda: to_spreadsheet_bytes(flatten_report_rows(rows), sheet_name=str(year)),
        lambda: render_budget_report_pdf(rows, title, currency, subtitle=church),
        key="budget",
    )

    st.markdown("---")
    st.markdown("### Flat reports")
    col1, col2, col3 = st.columns(3)
    report_type = col1.selectbox("Report", list(REPORT_NAMES), format_func=REPORT_NAMES.get)
    period = col2.selectbox("Period", ["all", "monthly"], format_func=lambda p: "All Time" if p == "all" else "Monthly")
    month = col3.date_input("Month", value=date.today(), disabled=period == "all")

    report = run_async(service.flat_report(report_type, period, month, snapshot=snapshot))
    if report.is_empty:
        st.info("No records for this period.")
    else:
        st.dataframe(pd.DataFrame(report.records), use_container_width=True, hide_index=True)
    _download_buttons(
        report.title,
        lambda: to_spreadsheet_bytes(report.records),
        lambda: render_flat_pdf(report, currency, subtitle=church),
        key="flat",
    )


def _download_buttons(title: str, build_xlsx, build_pdf, key: str):
    col1, col2 = st.columns(2)
    try:
        col1.download_button("⬇️ Excel", build_xlsx(), file_name=spreadsheet_file_name(title),
                             mime=SPREADSHEET_MIME, key=f"{key}_xlsx")
        col2.download_button("⬇️ PDF", build_pdf(), file_name=pdf_file_name(title),
                             mime=PDF_MIME, key=f"{key}_pdf")
    except NoDataToExportError as e:
        st.warning(str(e))


# =============================================================================
# SETTINGS
# =============================================================================

def render_settings_page(service: LedgerService):
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")
    status = validate_all_settings()

    services = [
        ("Google Sheets (Storage)", "google_sheets"),
        ("Ledger conventions", "app"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    settings = service.settings
    st.markdown("### Ledger")
    st.write(f"Currency: **{settings.currency}**")
    st.write(f"Legacy budget year: **{settings.legacy_budget_year or 'every year'}**")

    st.markdown("### Recent activity")
    events = service.activity.recent(limit=20)
    if events:
        st.dataframe(pd.DataFrame([
            {"When": e.timestamp, "Who": e.user_email, "Action": e.action.value, "Details": e.details}
            for e in events
        ]), use_container_width=True, hide_index=True)
    else:
        st.info("No changes made in this session yet.")

    st.markdown("---")
    st.markdown(
        "To configure the application, create a `.env` file with your settings. "
        "See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
