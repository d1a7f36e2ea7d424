"""Tests for the sheet stores, undoable import / status update, and the undo ledger."""

import io
import json
from unittest.mock import MagicMock, patch
from urllib.error import HTTPError, URLError

import pytest
from pydantic import TypeAdapter

from dataweaver._types import Dataset, ImportUndo, UndoRecord, UpdateUndo, WritePlan, WriteRange
from dataweaver.ingestion import DEFAULT_TEMPLATE
from dataweaver.sheets import (
    GoogleSheetsClient,
    SheetStoreError,
    UndoLedger,
    import_rows,
    plan_import,
    preview_updates,
    resolve_spreadsheet,
    update_statuses,
)
from dataweaver.sheets.links import parse_a1, parse_append_start, parse_spreadsheet_id

HEADERS = [h.strip() for h in DEFAULT_TEMPLATE.split(",")]


def _ticket(title, status="L1", client="SMPN 9", ticket_op=""):
    row = {h: "" for h in HEADERS}
    row.update({"Title": title, "Status": status, "Client Name": client, "Ticket OP": ticket_op})
    return row


@pytest.fixture
def import_dataset():
    return Dataset(headers=HEADERS, rows=[
        _ticket("Login error #1001"),               # already in the sheet
        _ticket("New bug #1004", status="L2", ticket_op="check logs"),
        _ticket(""),                                 # no title: ignored
        _ticket("Another #1005"),
    ])


class TestLinks:
    def test_parse_spreadsheet_id(self):
        assert parse_spreadsheet_id("https://docs.google.com/spreadsheets/d/abc-_123/edit") == "abc-_123"
        assert parse_spreadsheet_id("https://example.com/sheet") is None
        assert parse_spreadsheet_id("") is None

    def test_parse_a1(self):
        a1 = parse_a1("'All Case'!G2:T9")
        assert (a1.sheet, a1.start_col, a1.start_row, a1.end_col, a1.end_row) == ("All Case", 6, 2, 19, 9)
        assert parse_a1("All Case!M:M").end_row is None
        assert parse_a1("Sheet1").sheet == "Sheet1"

    def test_parse_a1_malformed(self):
        with pytest.raises(ValueError):
            parse_a1("Sheet1!2A")

    def test_parse_append_start(self):
        assert parse_append_start("'All Case'!A2414:T2415") == 2413
        assert parse_append_start("All Case!B5:T6") is None
        assert parse_append_start("") is None


class TestInMemorySheetStore:
    def test_read_trims_trailing_empties(self, sheet_store):
        values = sheet_store.read_range("sheet-123", "All Case!G:T")
        assert values[1] == ["L1", "", "", "", "", "", "Login error #1001"]
        assert len(values[2]) == 14

    def test_read_column(self, sheet_store):
        values = sheet_store.read_range("sheet-123", "All Case!M:M")
        assert [row[0] for row in values] == ["Title", "Login error #1001", "Report card #1002", "Sync issue #1003"]

    def test_unknown_spreadsheet(self, sheet_store):
        with pytest.raises(SheetStoreError) as exc_info:
            sheet_store.get_title("nope")
        assert exc_info.value.kind == "not_found"

    def test_unknown_sheet(self, sheet_store):
        with pytest.raises(SheetStoreError) as exc_info:
            sheet_store.read_range("sheet-123", "Other!A:A")
        assert exc_info.value.kind == "malformed"

    def test_sheet_id_lookup_ignores_case(self, sheet_store):
        assert sheet_store.get_sheet_id("sheet-123", " all case ") == 0
        assert sheet_store.get_sheet_id("sheet-123", "Missing") is None

    def test_batch_write_extends_rows(self, sheet_store):
        sheet_store.batch_write(WritePlan(
            spreadsheet_id="sheet-123",
            data=[WriteRange(range="All Case!B7", values=[["x", "y"]])],
        ))
        rows = sheet_store.rows("sheet-123", "All Case")
        assert len(rows) == 7
        assert rows[6] == ["", "x", "y"]

    def test_append_reports_range(self, sheet_store):
        updated = sheet_store.append_rows("sheet-123", "All Case", [["a"] * 20, ["b"] * 20])
        assert updated == "'All Case'!A5:T6"


class TestResolveSpreadsheet:
    def test_title(self, sheet_store, sheet_url):
        info = resolve_spreadsheet(sheet_store, sheet_url)
        assert info.ok
        assert (info.spreadsheet_id, info.title) == ("sheet-123", "Case Tracker")

    def test_empty_url(self, sheet_store):
        assert resolve_spreadsheet(sheet_store, "").error.startswith("URL is empty")

    def test_invalid_url(self, sheet_store):
        info = resolve_spreadsheet(sheet_store, "https://example.com")
        assert info.error == "Invalid Google Sheets URL format. Please use a valid share link."

    def test_remote_failure(self, sheet_store):
        info = resolve_spreadsheet(sheet_store, "https://docs.google.com/spreadsheets/d/other/edit")
        assert info.error.startswith("Analysis Failed:")


class TestPlanImport:
    def test_layout(self, import_dataset):
        plan = plan_import(import_dataset, ["Title", "Login error #1001"])
        assert plan.duplicates == ["Login error #1001"]
        assert [r["Title"] for r in plan.new_rows] == ["New bug #1004", "Another #1005"]

        row = plan.values[0]
        assert len(row) == 20
        assert row[:4] == ["", "", "", ""]
        assert row[6] == "L2"          # G: status
        assert row[12] == "New bug #1004"  # M: title
        assert row[15:19] == ["", "", "", ""]
        assert row[19] == "check logs"  # T: ticket note

    def test_all_duplicates(self, import_dataset):
        titles = [r["Title"] for r in import_dataset.rows]
        plan = plan_import(import_dataset, titles)
        assert plan.new_rows == []
        assert len(plan.duplicates) == 3


class TestImportRows:
    def test_import_and_undo(self, sheet_store, ledger, sheet_url, import_dataset):
        result = import_rows(sheet_store, ledger, sheet_url, import_dataset)

        assert result.ok
        assert result.message == "Import complete."
        assert result.imported_count == 2
        assert result.duplicate_count == 1
        assert result.undo == ImportUndo(spreadsheet_id="sheet-123", sheet_id=0, start_index=4, count=2)
        assert ledger.record == result.undo

        rows = sheet_store.rows("sheet-123", "All Case")
        assert len(rows) == 6
        assert rows[4][12] == "New bug #1004"

        undone = ledger.undo(sheet_store)
        assert undone.message == "Successfully undone import of 2 rows."
        assert len(sheet_store.rows("sheet-123", "All Case")) == 4
        assert sheet_store.rows("sheet-123", "All Case")[3][12] == "Sync issue #1003"
        assert ledger.record is None

    def test_second_undo_reports_error(self, sheet_store, ledger, sheet_url, import_dataset):
        import_rows(sheet_store, ledger, sheet_url, import_dataset)
        ledger.undo(sheet_store)
        again = ledger.undo(sheet_store)
        assert again.error == "Nothing to undo."

    def test_nothing_new(self, sheet_store, ledger, sheet_url):
        dataset = Dataset(headers=HEADERS, rows=[_ticket("Sync issue #1003")])
        result = import_rows(sheet_store, ledger, sheet_url, dataset)
        assert result.message == "No new data to import."
        assert result.duplicates == ["Sync issue #1003"]
        assert ledger.record is None

    def test_invalid_url(self, sheet_store, ledger, import_dataset):
        result = import_rows(sheet_store, ledger, "not a link", import_dataset)
        assert result.error == "Invalid Google Sheets URL format. Please use a valid share link."

    def test_empty_dataset(self, sheet_store, ledger, sheet_url):
        result = import_rows(sheet_store, ledger, sheet_url, Dataset(headers=HEADERS))
        assert result.error == "No data provided to import."

    def test_missing_sheet(self, sheet_store, ledger, sheet_url, import_dataset):
        result = import_rows(sheet_store, ledger, sheet_url, import_dataset, sheet_name="Archive")
        assert result.error == 'The target sheet named "Archive" was not found in the spreadsheet.'

    def test_remote_error(self, sheet_store, ledger, import_dataset):
        url = "https://docs.google.com/spreadsheets/d/missing/edit"
        result = import_rows(sheet_store, ledger, url, import_dataset)
        assert result.error == "Import Error: Requested entity was not found."

    def test_unparseable_range(self, sheet_store, ledger, sheet_url, import_dataset):
        with patch.object(sheet_store, "append_rows", return_value="All Case"):
            result = import_rows(sheet_store, ledger, sheet_url, import_dataset)
        assert result.ok
        assert result.imported_count == 2
        assert "could not parse the updated range" in result.message
        assert result.undo is None
        assert ledger.record is None

    def test_new_import_replaces_previous_record(self, sheet_store, ledger, sheet_url, import_dataset):
        import_rows(sheet_store, ledger, sheet_url, import_dataset)
        first = ledger.record
        dataset = Dataset(headers=HEADERS, rows=[_ticket("Fresh #2000")])
        import_rows(sheet_store, ledger, sheet_url, dataset)
        assert ledger.record != first
        assert ledger.record.start_index == 6


class TestUpdateStatuses:
    def test_preview(self, sheet_store, sheet_url, ticket_rows):
        preview = preview_updates(sheet_store, sheet_url, ticket_rows)
        assert [c.row_index for c in preview.changes] == [2]
        assert preview.skipped == 1

    def test_preview_errors(self, sheet_store, sheet_url, ticket_rows):
        assert preview_updates(sheet_store, sheet_url, []).error == "No data provided to preview."
        missing = preview_updates(sheet_store, "https://docs.google.com/spreadsheets/d/x/edit", ticket_rows)
        assert missing.error == "Requested entity was not found."

    def test_update_and_undo(self, sheet_store, ledger, sheet_url, ticket_rows):
        result = update_statuses(sheet_store, ledger, sheet_url, ticket_rows)

        assert result.message == "Successfully updated 1 rows."
        assert result.skipped == 1
        row = sheet_store.rows("sheet-123", "All Case")[1]
        assert (row[6], row[19]) == ("Solved", "done")

        undone = ledger.undo(sheet_store)
        assert undone.message == "Successfully undone update of 1 rows."
        row = sheet_store.rows("sheet-123", "All Case")[1]
        assert (row[6], row[19]) == ("L1", "")
        # other rows untouched
        assert sheet_store.rows("sheet-123", "All Case")[2][19] == "escalated"

    def test_no_changes_clears_ledger(self, sheet_store, ledger, sheet_url, ticket_rows):
        update_statuses(sheet_store, ledger, sheet_url, ticket_rows)
        assert ledger.record is not None

        result = update_statuses(sheet_store, ledger, sheet_url, ticket_rows)
        assert result.message == "No changes detected. Everything is up-to-date."
        assert ledger.record is None

    def test_empty_rows(self, sheet_store, ledger, sheet_url):
        assert update_statuses(sheet_store, ledger, sheet_url, []).error == "No data provided to update."

    def test_write_failure(self, sheet_store, ledger, sheet_url, ticket_rows):
        error = SheetStoreError("The caller does not have permission", kind="permission_denied", status=403)
        with patch.object(sheet_store, "batch_write", side_effect=error):
            result = update_statuses(sheet_store, ledger, sheet_url, ticket_rows)
        assert result.error == "The caller does not have permission"
        assert ledger.record is None


class TestUndoLedger:
    def test_empty(self, sheet_store):
        assert UndoLedger().undo(sheet_store).error == "Nothing to undo."

    def test_failure_keeps_record(self, sheet_store, ledger):
        record = ImportUndo(spreadsheet_id="sheet-123", sheet_id=0, start_index=1, count=1)
        ledger.record_mutation(record)
        with patch.object(sheet_store, "delete_rows", side_effect=SheetStoreError("offline", kind="network")):
            result = ledger.undo(sheet_store)
        assert result.error == "offline"
        assert ledger.record == record

        assert ledger.undo(sheet_store).ok
        assert ledger.record is None

    def test_clear(self, ledger):
        ledger.record_mutation(ImportUndo(spreadsheet_id="s", sheet_id=0, start_index=0, count=1))
        ledger.clear()
        assert ledger.record is None

    def test_record_from_saved_json(self, sheet_store, ledger):
        saved = {
            "kind": "update",
            "spreadsheet_id": "sheet-123",
            "changes": [{"range": "All Case!G2", "old_value": "Pending", "new_value": "L1"}],
            "row_count": 1,
        }
        record = TypeAdapter(UndoRecord).validate_python(saved)
        assert isinstance(record, UpdateUndo)

        ledger.record_mutation(record)
        result = ledger.undo(sheet_store)
        assert result.message == "Successfully undone update of 1 rows."
        assert sheet_store.rows("sheet-123", "All Case")[1][6] == "Pending"


class TestGoogleSheetsClient:
    def setup_method(self):
        self.client = GoogleSheetsClient(access_token="ya29.token")

    def test_token_from_env(self, monkeypatch):
        monkeypatch.setenv("DATAWEAVER_GOOGLE_TOKEN", "env-token")
        assert GoogleSheetsClient().api_key == "env-token"

    def test_requires_token(self, monkeypatch):
        monkeypatch.delenv("DATAWEAVER_GOOGLE_TOKEN", raising=False)
        with pytest.raises(SheetStoreError, match="access token not configured"):
            GoogleSheetsClient().get_title("abc")

    def test_get_title(self):
        with patch.object(self.client, "get", return_value={"properties": {"title": "Cases"}}) as mock_get:
            assert self.client.get_title("abc") == "Cases"
        assert mock_get.call_args[0][0] == "abc?fields=properties.title"

    def test_get_sheet_id(self):
        sheets = {"sheets": [
            {"properties": {"sheetId": 0, "title": "Summary"}},
            {"properties": {"sheetId": 77, "title": "All Case "}},
        ]}
        with patch.object(self.client, "get", return_value=sheets):
            assert self.client.get_sheet_id("abc", "all case") == 77
            assert self.client.get_sheet_id("abc", "Archive") is None

    def test_read_range_quotes_range(self):
        with patch.object(self.client, "get", return_value={"values": [["L1"]]}) as mock_get:
            assert self.client.read_range("abc", "All Case!G:T") == [["L1"]]
        assert mock_get.call_args[0][0] == "abc/values/All%20Case%21G%3AT"

    def test_read_range_empty(self):
        with patch.object(self.client, "get", return_value={"range": "All Case!G1:T1"}):
            assert self.client.read_range("abc", "All Case!G:T") == []

    def test_batch_write(self):
        plan = WritePlan(spreadsheet_id="abc", data=[WriteRange(range="All Case!G2", values=[["Solved"]])])
        with patch.object(self.client, "post", return_value={}) as mock_post:
            self.client.batch_write(plan)
        path = mock_post.call_args[0][0]
        body = mock_post.call_args[1]["body"]
        assert path == "abc/values:batchUpdate"
        assert body == {
            "valueInputOption": "USER_ENTERED",
            "data": [{"range": "All Case!G2", "values": [["Solved"]]}],
        }

    def test_append_rows(self):
        response = {"updates": {"updatedRange": "'All Case'!A10:T11"}}
        with patch.object(self.client, "post", return_value=response) as mock_post:
            updated = self.client.append_rows("abc", "All Case", [["x"], ["y"]])
        assert updated == "'All Case'!A10:T11"
        assert mock_post.call_args[0][0] == "abc/values/All%20Case:append?valueInputOption=USER_ENTERED"
        assert mock_post.call_args[1]["body"] == {"values": [["x"], ["y"]]}

    def test_delete_rows(self):
        with patch.object(self.client, "post", return_value={}) as mock_post:
            self.client.delete_rows("abc", 77, 9, 11)
        request = mock_post.call_args[1]["body"]["requests"][0]["deleteDimension"]["range"]
        assert request == {"sheetId": 77, "dimension": "ROWS", "startIndex": 9, "endIndex": 11}

    def test_http_error_maps_kind(self):
        body = json.dumps({"error": {"code": 404, "message": "Requested entity was not found."}})
        error = HTTPError("https://x", 404, "Not Found", {}, io.BytesIO(body.encode("utf-8")))
        with patch("dataweaver.sheets._base.urlopen", side_effect=error):
            with pytest.raises(SheetStoreError) as exc_info:
                self.client.get_title("abc")
        assert exc_info.value.kind == "not_found"
        assert exc_info.value.status == 404
        assert str(exc_info.value) == "Requested entity was not found."

    def test_permission_error_default_message(self):
        error = HTTPError("https://x", 403, "Forbidden", {}, io.BytesIO(b"<html>"))
        with patch("dataweaver.sheets._base.urlopen", side_effect=error):
            with pytest.raises(SheetStoreError) as exc_info:
                self.client.get_title("abc")
        assert exc_info.value.kind == "permission_denied"

    def test_network_error(self):
        with patch("dataweaver.sheets._base.urlopen", side_effect=URLError("timed out")):
            with pytest.raises(SheetStoreError) as exc_info:
                self.client.read_range("abc", "A:A")
        assert exc_info.value.kind == "network"

    def test_successful_request(self):
        response = MagicMock()
        response.read.return_value = b'{"properties": {"title": "Cases"}}'
        response.__enter__.return_value = response
        with patch("dataweaver.sheets._base.urlopen", return_value=response) as mock_open:
            assert self.client.get_title("abc") == "Cases"
        req = mock_open.call_args[0][0]
        assert req.get_header("Authorization") == "Bearer ya29.token"
        assert req.full_url.startswith("https://sheets.googleapis.com/v4/spreadsheets/abc")
