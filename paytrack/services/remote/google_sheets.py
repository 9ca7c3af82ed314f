"""
Google Sheets Remote Store

DESIGN DECISION: Google Sheets works as a remote store for a personal or
small-business ledger because:
1. The owner can read and export payments directly in Sheets
2. No server or database to run
3. Google handles backups

TRADEOFFS:
- No transactions: an update is a find-row-then-write, not atomic
- Every lookup reads the whole sheet (fine at ledger volumes)

Payments are stored one per row keyed by the client-generated id.
API failures are mapped to StoreConnectionError and retried.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from paytrack.audit.storage import AuditStorageInterface
from paytrack.config import GoogleSheetsSettings, get_settings
from paytrack.models.audit import AuditEvent
from paytrack.models.ledger import Payment
from paytrack.services.remote.interface import (
    DuplicateError,
    NotFoundError,
    RemotePaymentStore,
    StoreConnectionError,
)


logger = structlog.get_logger(__name__)


# Column layout of the Payments sheet
PAYMENT_COLUMNS = [
    "id",
    "date",
    "amount",
    "description",
    "currency_code",
    "workspace_id",
    "updated_at",
]

# Column layout of the Audit sheet (matches AuditEvent.to_sheets_row)
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]

_retry_on_connection = retry(
    retry=retry_if_exception_type(StoreConnectionError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and creates missing worksheets with headers.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @_retry_on_connection
    def connect(self) -> gspread.Client:
        """Authorize with the service account credentials."""
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
                raise StoreConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except gspread.exceptions.APIError as e:
                raise StoreConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(self._settings.spreadsheet_id)
            except gspread.SpreadsheetNotFound:
                raise StoreConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(self, title: str, columns: list[str], rows: int) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            return spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(title=title, rows=rows, cols=len(columns))
            sheet.append_row(columns)
            return sheet

    def get_payments_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(
            self._settings.payments_sheet_name, PAYMENT_COLUMNS, rows=1000,
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000,
        )


def payment_to_row(payment: Payment) -> list:
    """Convert a Payment to a spreadsheet row."""
    return [
        payment.id,
        payment.date.isoformat(),
        str(payment.amount),
        payment.description or "",
        payment.currency_code,
        payment.workspace_id,
        datetime.utcnow().isoformat(),
    ]


def row_to_payment(row: list) -> Payment:
    """Convert a spreadsheet row to a Payment. Stored rows are synced by definition."""
    def safe_get(index: int, default: str = "") -> str:
        try:
            return row[index] if row[index] else default
        except IndexError:
            return default

    return Payment(
        id=safe_get(0),
        date=date.fromisoformat(safe_get(1)),
        amount=Decimal(safe_get(2, "0")),
        description=safe_get(3) or None,
        currency_code=safe_get(4),
        workspace_id=safe_get(5),
        synced=True,
    )


class GoogleSheetsRemoteStore(RemotePaymentStore):
    """RemotePaymentStore backed by one worksheet, one payment per row."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _sheet(self) -> gspread.Worksheet:
        try:
            return self._client.get_payments_sheet()
        except gspread.exceptions.APIError as e:
            raise StoreConnectionError(f"Google Sheets unavailable: {e}") from e

    @staticmethod
    def _find_row(all_rows: list[list], payment_id: str) -> Optional[int]:
        """1-based sheet row index of a payment (row 1 is the header)."""
        for idx, row in enumerate(all_rows[1:], start=2):
            if row and row[0] == payment_id:
                return idx
        return None

    def _read_all(self, sheet: gspread.Worksheet) -> list[list]:
        try:
            return sheet.get_all_values()
        except gspread.exceptions.APIError as e:
            raise StoreConnectionError(f"Failed to read payments: {e}") from e

    @_retry_on_connection
    async def create(self, payment: Payment) -> Payment:
        sheet = self._sheet()
        if self._find_row(self._read_all(sheet), payment.id) is not None:
            raise DuplicateError(f"Payment already exists: {payment.id}")
        try:
            sheet.append_row(payment_to_row(payment), value_input_option="RAW")
        except gspread.exceptions.APIError as e:
            raise StoreConnectionError(f"Failed to save payment: {e}") from e
        return payment

    @_retry_on_connection
    async def update(self, payment_id: str, payment: Payment) -> Payment:
        sheet = self._sheet()
        idx = self._find_row(self._read_all(sheet), payment_id)
        if idx is None:
            raise NotFoundError(f"Payment not found: {payment_id}")
        try:
            sheet.update(
                range_name=f"A{idx}",
                values=[payment_to_row(payment)],
                value_input_option="RAW",
            )
        except gspread.exceptions.APIError as e:
            raise StoreConnectionError(f"Failed to update payment: {e}") from e
        return payment

    @_retry_on_connection
    async def delete(self, payment_id: str) -> None:
        sheet = self._sheet()
        idx = self._find_row(self._read_all(sheet), payment_id)
        if idx is None:
            logger.info("remote_delete_missing", payment_id=payment_id)
            return
        try:
            sheet.delete_rows(idx)
        except gspread.exceptions.APIError as e:
            raise StoreConnectionError(f"Failed to delete payment: {e}") from e

    @_retry_on_connection
    async def list_payments(
        self,
        workspace_id: str,
        year: int,
        month: int,
    ) -> list[Payment]:
        prefix = f"{year:04d}-{month + 1:02d}-"
        payments = []
        for row in self._read_all(self._sheet())[1:]:
            if not row or not row[0]:
                continue
            if len(row) < 6 or row[5] != workspace_id or not row[1].startswith(prefix):
                continue
            try:
                payments.append(row_to_payment(row))
            except (ValueError, ArithmeticError):
                logger.warning("malformed_payment_row", payment_id=row[0])
        return payments


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """Append-only audit log in its own worksheet."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def append_event(self, event: AuditEvent) -> bool:
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except (gspread.exceptions.APIError, StoreConnectionError) as e:
            logger.warning("audit_sheet_write_failed", error=str(e), event_id=str(event.event_id))
            return False
