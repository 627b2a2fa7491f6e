"""Google Sheets asset ledger.

Asset_Database layout: column A holds the generated file name (a sheet
formula), E the base footage id, H the script id, L the subtitled flag (Y/N)
and M the video link. Script_Database keeps the script id in column A and the
review status in column G.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any

from googleapiclient.errors import HttpError

from creative_engine.adapters.google_auth import build_service, get_google_credentials
from creative_engine.adapters.ledger.base import (
    AssetLedgerEntry,
    CampaignReportRow,
    LedgerAdapter,
    extract_spreadsheet_id,
)
from creative_engine.config import settings
from creative_engine.errors import LedgerError
from creative_engine.logging import get_logger

logger = get_logger(__name__)

SCRIPT_STATUS_COLUMN = "G"


def _cell(rows: list[list[Any]], index: int) -> str:
    if index < len(rows) and rows[index]:
        return str(rows[index][0]).strip()
    return ""


class GoogleSheetsLedger(LedgerAdapter):
    """Sheets v4 ledger; blocking client calls run in worker threads."""

    def __init__(
        self,
        credentials: Any = None,
        asset_tab: str | None = None,
        script_tab: str | None = None,
        report_tab: str | None = None,
    ) -> None:
        self._credentials = credentials
        self.asset_tab = asset_tab or settings.asset_database_tab
        self.script_tab = script_tab or settings.script_database_tab
        self.report_tab = report_tab or settings.campaign_report_tab

    @property
    def name(self) -> str:
        return "google_sheets"

    def _values(self) -> Any:
        if self._credentials is None:
            self._credentials = get_google_credentials()
        return build_service("sheets", "v4", self._credentials).spreadsheets().values()

    async def _call(self, fn: Any, *args: Any) -> Any:
        try:
            return await asyncio.to_thread(fn, *args)
        except HttpError as exc:
            raise LedgerError(f"Google Sheets request failed: {exc}") from exc

    # Blocking helpers

    def _write_sync(self, spreadsheet_id: str, entries: list[AssetLedgerEntry]) -> list[int]:
        values = self._values()
        tab = self.asset_tab
        existing = values.batchGet(
            spreadsheetId=spreadsheet_id,
            ranges=[f"{tab}!E:E", f"{tab}!H:H", f"{tab}!L:L"],
        ).execute()
        columns = [vr.get("values", []) for vr in existing.get("valueRanges", [])]
        columns += [[]] * (3 - len(columns))

        # First row (after the header) where E, H and L are all empty
        max_rows = max(len(c) for c in columns)
        start_row = max_rows + 1
        for index in range(1, max_rows + 1):
            if not any(_cell(c, index) for c in columns):
                start_row = index + 1
                break

        data = []
        rows = []
        for offset, entry in enumerate(entries):
            row = start_row + offset
            rows.append(row)
            data += [
                {"range": f"{tab}!E{row}", "values": [[entry.base_id]]},
                {"range": f"{tab}!H{row}", "values": [[entry.script_id]]},
                {"range": f"{tab}!L{row}", "values": [["Y" if entry.subtitled else "N"]]},
            ]
        values.batchUpdate(
            spreadsheetId=spreadsheet_id,
            body={"valueInputOption": "RAW", "data": data},
        ).execute()
        return rows

    def _read_names_sync(self, spreadsheet_id: str, rows: list[int]) -> list[str | None]:
        response = self._values().get(
            spreadsheetId=spreadsheet_id,
            range=f"{self.asset_tab}!A{min(rows)}:A{max(rows)}",
        ).execute()
        column = response.get("values", [])
        first = min(rows)
        return [_cell(column, row - first) or None for row in rows]

    def _update_links_sync(self, spreadsheet_id: str, links: dict[str, str]) -> int:
        values = self._values()
        response = values.get(spreadsheetId=spreadsheet_id, range=f"{self.asset_tab}!A:A").execute()
        column = response.get("values", [])
        data = []
        for index in range(len(column)):
            link = links.get(_cell(column, index))
            if link:
                data.append({"range": f"{self.asset_tab}!M{index + 1}", "values": [[link]]})
        if data:
            values.batchUpdate(
                spreadsheetId=spreadsheet_id,
                body={"valueInputOption": "RAW", "data": data},
            ).execute()
        return len(data)

    def _update_status_sync(self, spreadsheet_id: str, script_id: str, status: str) -> bool:
        values = self._values()
        ids = values.get(spreadsheetId=spreadsheet_id, range=f"{self.script_tab}!A:A").execute()
        column = ids.get("values", [])
        for index in range(len(column)):
            if _cell(column, index) == script_id:
                values.update(
                    spreadsheetId=spreadsheet_id,
                    range=f"{self.script_tab}!{SCRIPT_STATUS_COLUMN}{index + 1}",
                    valueInputOption="RAW",
                    body={"values": [[status]]},
                ).execute()
                return True
        return False

    def _append_report_sync(self, spreadsheet_id: str, rows: list[CampaignReportRow]) -> None:
        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        self._values().append(
            spreadsheetId=spreadsheet_id,
            range=f"{self.report_tab}!A:D",
            valueInputOption="RAW",
            insertDataOption="INSERT_ROWS",
            body={"values": [[r.campaign_name, r.ad_id, r.ad_name, stamp] for r in rows]},
        ).execute()

    # Async interface

    async def write_asset_entries(
        self, spreadsheet_id: str, entries: list[AssetLedgerEntry]
    ) -> list[int]:
        if not entries:
            return []
        rows = await self._call(self._write_sync, extract_spreadsheet_id(spreadsheet_id), entries)
        logger.info("ledger_entries_written", count=len(entries), rows=rows)
        return rows

    async def read_file_names(self, spreadsheet_id: str, rows: list[int]) -> list[str | None]:
        if not rows:
            return []
        return await self._call(self._read_names_sync, extract_spreadsheet_id(spreadsheet_id), rows)

    async def update_asset_video_links(self, spreadsheet_id: str, links: dict[str, str]) -> int:
        if not links:
            return 0
        updated = await self._call(
            self._update_links_sync, extract_spreadsheet_id(spreadsheet_id), links
        )
        logger.info("ledger_video_links_updated", count=updated)
        return updated

    async def update_script_status(self, spreadsheet_id: str, script_id: str, status: str) -> bool:
        found = await self._call(
            self._update_status_sync, extract_spreadsheet_id(spreadsheet_id), script_id, status
        )
        if not found:
            logger.warning("ledger_script_not_found", script_id=script_id)
        return found

    async def append_campaign_report(
        self, spreadsheet_id: str, rows: list[CampaignReportRow]
    ) -> None:
        if rows:
            await self._call(self._append_report_sync, extract_spreadsheet_id(spreadsheet_id), rows)
            logger.info("campaign_report_appended", count=len(rows))
