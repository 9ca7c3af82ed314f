"""
Tests for the Google Sheets remote store.

A fake worksheet stands in for gspread; no Google API calls are made.
"""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from paytrack.models.audit import AuditEventBuilder
from paytrack.services.remote import (
    DuplicateError,
    GoogleSheetsAuditStorage,
    GoogleSheetsRemoteStore,
    NotFoundError,
)
from paytrack.services.remote.google_sheets import (
    AUDIT_COLUMNS,
    PAYMENT_COLUMNS,
    payment_to_row,
    row_to_payment,
)

from conftest import make_payment


class FakeWorksheet:
    """Keeps rows as lists of strings, like get_all_values() returns them."""

    def __init__(self, header):
        self.rows = [list(header)]

    def get_all_values(self):
        return [list(row) for row in self.rows]

    def append_row(self, row, value_input_option=None):
        self.rows.append([str(value) for value in row])

    def update(self, range_name, values, value_input_option=None):
        index = int(range_name[1:]) - 1
        self.rows[index] = [str(value) for value in values[0]]

    def delete_rows(self, index):
        del self.rows[index - 1]


class FakeSheetsClient:
    def __init__(self):
        self.payments_sheet = FakeWorksheet(PAYMENT_COLUMNS)
        self.audit_sheet = FakeWorksheet(AUDIT_COLUMNS)

    def get_payments_sheet(self):
        return self.payments_sheet

    def get_audit_sheet(self):
        return self.audit_sheet


@pytest.fixture
def client():
    return FakeSheetsClient()


@pytest.fixture
def store(client):
    return GoogleSheetsRemoteStore(client)


class TestRowConversion:
    """Tests for payment_to_row() and row_to_payment()."""

    def test_row_layout(self):
        row = payment_to_row(make_payment("p-1", "12.50", description="taxi"))
        assert row[:6] == ["p-1", "2026-10-01", "12.50", "taxi", "MAD", "ws-1"]
        assert len(row) == len(PAYMENT_COLUMNS)

    def test_row_back_to_payment_is_synced(self):
        payment = row_to_payment(payment_to_row(make_payment("p-1", "12.50")))
        assert payment.id == "p-1"
        assert payment.amount == Decimal("12.50")
        assert payment.description is None
        assert payment.synced is True


class TestGoogleSheetsRemoteStore:
    """Tests for GoogleSheetsRemoteStore."""

    def test_create_appends_row(self, store, client):
        asyncio.run(store.create(make_payment("p-1", "10")))
        assert [row[0] for row in client.payments_sheet.rows[1:]] == ["p-1"]

    def test_create_duplicate_raises(self, store):
        asyncio.run(store.create(make_payment("p-1")))
        with pytest.raises(DuplicateError):
            asyncio.run(store.create(make_payment("p-1")))

    def test_update_rewrites_row(self, store, client):
        asyncio.run(store.create(make_payment("p-1", "10")))
        asyncio.run(store.create(make_payment("p-2", "5")))

        asyncio.run(store.update("p-2", make_payment("p-2", "8")))

        assert client.payments_sheet.rows[2][2] == "8"
        assert client.payments_sheet.rows[1][2] == "10"

    def test_update_missing_raises(self, store):
        with pytest.raises(NotFoundError):
            asyncio.run(store.update("p-1", make_payment("p-1")))

    def test_delete_removes_row(self, store, client):
        asyncio.run(store.create(make_payment("p-1")))
        asyncio.run(store.create(make_payment("p-2")))

        asyncio.run(store.delete("p-1"))

        assert [row[0] for row in client.payments_sheet.rows[1:]] == ["p-2"]

    def test_delete_missing_is_not_an_error(self, store):
        asyncio.run(store.delete("nope"))

    def test_list_filters_month_and_workspace(self, store, client):
        asyncio.run(store.create(make_payment("p-1", "10", day=date(2026, 10, 3))))
        asyncio.run(store.create(make_payment("p-2", "10", day=date(2026, 11, 3))))
        asyncio.run(store.create(make_payment("p-3", "10", day=date(2026, 10, 9), workspace_id="other")))

        payments = asyncio.run(store.list_payments("ws-1", 2026, 9))
        assert [p.id for p in payments] == ["p-1"]

    def test_list_skips_malformed_rows(self, store, client):
        asyncio.run(store.create(make_payment("p-1", "10", day=date(2026, 10, 3))))
        client.payments_sheet.rows.append(["p-bad", "2026-10-04", "ten", "", "MAD", "ws-1", ""])

        payments = asyncio.run(store.list_payments("ws-1", 2026, 9))
        assert [p.id for p in payments] == ["p-1"]


class TestGoogleSheetsAuditStorage:
    """Tests for GoogleSheetsAuditStorage."""

    def test_appends_event_row(self, client):
        storage = GoogleSheetsAuditStorage(client)
        event = AuditEventBuilder.payment_added("p-1", "10", 0, 4)

        assert storage.append_event(event) is True

        row = client.audit_sheet.rows[-1]
        assert row[2] == "payment_added"
        assert row[5] == "p-1"
