"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the storage backend because:
1. The treasurer and pastors can view the ledger directly in Sheets
2. No database setup required
3. Built-in backup and sharing (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (a congregation's ledger is small)
- No transactions (a source delete and its cascade are separate calls)
- Limited query capabilities (we filter in Python)

Each collection lives in its own worksheet: header row first, one
record per row. Budget maps are JSON-serialized into a single cell.
"""

import json
from typing import Optional

import gspread
import structlog
from google.oauth2.service_account import Credentials
from pydantic import BaseModel, ValidationError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from church_ledger.config import get_settings
from church_ledger.services.storage.interface import (
    Collection,
    ConnectionError,
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)

logger = structlog.get_logger("church_ledger.storage")


# Column mappings per worksheet
COLUMNS: dict[Collection, list[str]] = {
    Collection.ACCOUNTS: [
        "id",
        "code",
        "name",
        "type",
        "budgets",
        "created_at",
        "recorded_by_user_id",
    ],
    Collection.INCOME_SOURCES: [
        "id",
        "code",
        "transaction_name",
        "category",
        "account_id",
        "budget",
        "budgets",
        "description",
        "created_at",
        "recorded_by_user_id",
    ],
    Collection.EXPENSE_SOURCES: [
        "id",
        "code",
        "expense_name",
        "category",
        "account_id",
        "budget",
        "budgets",
        "description",
        "created_at",
        "recorded_by_user_id",
    ],
    Collection.INCOME_RECORDS: [
        "id",
        "code",
        "date",
        "transaction_name",
        "category",
        "amount",
        "account_id",
        "income_source_id",
        "member_name",
        "description",
        "created_at",
        "recorded_by_user_id",
    ],
    Collection.EXPENSE_RECORDS: [
        "id",
        "code",
        "date",
        "expense_name",
        "category",
        "amount",
        "account_id",
        "expense_source_id",
        "payee",
        "payment_method",
        "description",
        "created_at",
        "recorded_by_user_id",
    ],
    Collection.MEMBERS: [
        "id",
        "full_name",
        "created_at",
        "recorded_by_user_id",
    ],
}

# Cells holding JSON documents
JSON_COLUMNS = {"budgets"}

_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)

# Sheets calls are retried on API errors only (quota, transient 5xx)
_retry_api = retry(
    retry=retry_if_exception_type(gspread.exceptions.APIError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._sheets: dict[Collection, gspread.Worksheet] = {}
        self._settings = get_settings().google_sheets

    @_retry
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def sheet_name(self, collection: Collection) -> str:
        return getattr(self._settings, f"{collection.value}_sheet_name")

    def get_sheet(self, collection: Collection) -> gspread.Worksheet:
        """Get or create the worksheet of a collection."""
        if collection not in self._sheets:
            spreadsheet = self.get_spreadsheet()
            title = self.sheet_name(collection)
            try:
                sheet = spreadsheet.worksheet(title)
            except gspread.WorksheetNotFound:
                # Create the sheet with headers
                sheet = spreadsheet.add_worksheet(
                    title=title,
                    rows=1000,
                    cols=len(COLUMNS[collection]),
                )
                sheet.append_row(COLUMNS[collection])
            self._sheets[collection] = sheet
        return self._sheets[collection]


def record_to_row(collection: Collection, record: BaseModel) -> list[str]:
    """Convert a record to a spreadsheet row in column order."""
    data = record.model_dump(mode="json")
    row = []
    for column in COLUMNS[collection]:
        value = data.get(column)
        if column in JSON_COLUMNS:
            row.append(json.dumps(value or {}))
        elif value is None:
            row.append("")
        else:
            row.append(str(value))
    return row


def row_to_record(collection: Collection, row: list[str]) -> BaseModel:
    """
    Convert a spreadsheet row to a record.

    Empty cells are left out so model defaults apply; missing trailing
    cells are treated as empty.
    """
    data = {}
    for index, column in enumerate(COLUMNS[collection]):
        value = row[index] if index < len(row) else ""
        if not value:
            continue
        data[column] = json.loads(value) if column in JSON_COLUMNS else value
    return collection.model.model_validate(data)


class GoogleSheetsLedgerStorage(LedgerStorageInterface):
    """
    Google Sheets implementation of ledger storage.

    Records are stored as rows, one worksheet per collection.
    Rows that no longer validate are skipped with a warning.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _data_rows(self, collection: Collection) -> list[list[str]]:
        # Row 1 is the header
        return self._client.get_sheet(collection).get_all_values()[1:]

    def _find_row(self, collection: Collection, record_id: str) -> Optional[int]:
        """1-based sheet row index of a record, or None."""
        for idx, row in enumerate(self._data_rows(collection), start=2):
            if row and row[0] == record_id:
                return idx
        return None

    @_retry_api
    def _append_row(self, collection: Collection, row: list[str]) -> None:
        self._client.get_sheet(collection).append_row(row, value_input_option="RAW")

    async def add(self, collection: Collection, record: BaseModel) -> bool:
        """Append a record to its worksheet."""
        try:
            if self._find_row(collection, record.id) is not None:
                raise DuplicateError(f"{collection.value} record already exists: {record.id}")
            self._append_row(collection, record_to_row(collection, record))
            return True
        except DuplicateError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save {collection.value} record: {e}")

    async def get(self, collection: Collection, record_id: str) -> Optional[BaseModel]:
        """Retrieve a record by id."""
        try:
            for row in self._data_rows(collection):
                if row and row[0] == record_id:
                    return row_to_record(collection, row)
            return None
        except Exception as e:
            raise StorageError(f"Failed to get {collection.value} record: {e}")

    async def update(self, collection: Collection, record: BaseModel) -> bool:
        """Rewrite an existing record's row cell by cell."""
        try:
            idx = self._find_row(collection, record.id)
            if idx is None:
                raise NotFoundError(f"{collection.value} record not found: {record.id}")

            sheet = self._client.get_sheet(collection)
            for col_idx, value in enumerate(record_to_row(collection, record), start=1):
                sheet.update_cell(idx, col_idx, value)
            return True
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update {collection.value} record: {e}")

    async def delete(self, collection: Collection, record_id: str) -> bool:
        """Delete a record's row."""
        try:
            idx = self._find_row(collection, record_id)
            if idx is None:
                return False
            self._client.get_sheet(collection).delete_rows(idx)
            return True
        except Exception as e:
            raise StorageError(f"Failed to delete {collection.value} record: {e}")

    async def list_all(self, collection: Collection) -> list[BaseModel]:
        """Every valid record of a collection."""
        try:
            rows = self._data_rows(collection)
        except Exception as e:
            raise StorageError(f"Failed to list {collection.value}: {e}")

        records = []
        for row in rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                records.append(row_to_record(collection, row))
            except (ValidationError, ValueError) as e:
                logger.warning(
                    "skipped_malformed_row",
                    collection=collection.value,
                    record_id=row[0],
                    error=str(e),
                )
        return records
