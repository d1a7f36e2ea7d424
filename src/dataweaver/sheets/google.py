"""Google Sheets v4 REST adapter -- read ranges, batch writes, appends, row deletes."""

from __future__ import annotations

import logging
import os
from typing import Any, List, Optional
from urllib.parse import quote

from .._types import WritePlan
from ._base import BaseClient

logger = logging.getLogger(__name__)

TOKEN_ENV = "DATAWEAVER_GOOGLE_TOKEN"


class GoogleSheetsClient(BaseClient):
    """Sheets API client implementing :class:`~dataweaver.sheets.store.SheetStore`.

    Authenticates with an OAuth access token (service account or user),
    taken from ``DATAWEAVER_GOOGLE_TOKEN`` when not passed explicitly.
    """

    def __init__(self, access_token: str = "", timeout: int = 30):
        super().__init__(
            base_url="https://sheets.googleapis.com/v4/spreadsheets",
            api_key=access_token or os.getenv(TOKEN_ENV, ""),
            auth_prefix="Bearer",
            timeout=timeout,
        )

    def get_title(self, spreadsheet_id: str) -> str:
        self.check_configured("Google Sheets")
        data = self.get(f"{spreadsheet_id}?fields=properties.title")
        return data.get("properties", {}).get("title", "")

    def get_sheet_id(self, spreadsheet_id: str, sheet_name: str) -> Optional[int]:
        self.check_configured("Google Sheets")
        data = self.get(f"{spreadsheet_id}?fields=sheets.properties.sheetId,sheets.properties.title")
        wanted = sheet_name.strip().lower()
        for sheet in data.get("sheets", []):
            props = sheet.get("properties", {})
            if str(props.get("title", "")).strip().lower() == wanted:
                return props.get("sheetId")
        return None

    def read_range(self, spreadsheet_id: str, range_: str) -> List[List[Any]]:
        self.check_configured("Google Sheets")
        data = self.get(f"{spreadsheet_id}/values/{quote(range_, safe='')}")
        return data.get("values", [])

    def batch_write(self, plan: WritePlan) -> None:
        self.check_configured("Google Sheets")
        body = {
            "valueInputOption": plan.value_input_option,
            "data": [item.model_dump() for item in plan.data],
        }
        self.post(f"{plan.spreadsheet_id}/values:batchUpdate", body=body)
        logger.info("Batch-wrote %d ranges to %s", len(plan.data), plan.spreadsheet_id)

    def append_rows(self, spreadsheet_id: str, sheet_name: str, values: List[List[Any]]) -> str:
        self.check_configured("Google Sheets")
        path = (
            f"{spreadsheet_id}/values/{quote(sheet_name, safe='')}:append"
            f"?valueInputOption=USER_ENTERED"
        )
        data = self.post(path, body={"values": values})
        return data.get("updates", {}).get("updatedRange", "")

    def delete_rows(self, spreadsheet_id: str, sheet_id: int, start_index: int, end_index: int) -> None:
        self.check_configured("Google Sheets")
        body = {
            "requests": [{
                "deleteDimension": {
                    "range": {
                        "sheetId": sheet_id,
                        "dimension": "ROWS",
                        "startIndex": start_index,
                        "endIndex": end_index,
                    }
                }
            }]
        }
        self.post(f"{spreadsheet_id}:batchUpdate", body=body)
