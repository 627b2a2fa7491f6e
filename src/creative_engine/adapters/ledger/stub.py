"""Stub asset ledger for testing."""

from creative_engine.adapters.ledger.base import (
    AssetLedgerEntry,
    CampaignReportRow,
    LedgerAdapter,
)
from creative_engine.logging import get_logger

logger = get_logger(__name__)


class StubLedger(LedgerAdapter):
    """In-memory ledger.

    Generated names follow ``<script_id>_<base_id>``. ``reads_until_ready``
    simulates the spreadsheet filling names in late: that many reads return
    empty names first. With ``auto_name=False`` names never appear.
    """

    def __init__(self, auto_name: bool = True, reads_until_ready: int = 0) -> None:
        self.auto_name = auto_name
        self.reads_until_ready = reads_until_ready
        self.rows: dict[int, AssetLedgerEntry] = {}
        self.read_count = 0
        self.video_links: dict[str, str] = {}
        self.script_statuses: dict[str, str] = {}
        self.campaign_rows: list[CampaignReportRow] = []

    @property
    def name(self) -> str:
        return "stub"

    async def write_asset_entries(
        self, spreadsheet_id: str, entries: list[AssetLedgerEntry]
    ) -> list[int]:
        start = max(self.rows, default=1) + 1
        written = []
        for offset, entry in enumerate(entries):
            self.rows[start + offset] = entry
            written.append(start + offset)
        logger.info("stub_ledger_written", count=len(entries), first_row=start)
        return written

    async def read_file_names(self, spreadsheet_id: str, rows: list[int]) -> list[str | None]:
        self.read_count += 1
        if not self.auto_name or self.read_count <= self.reads_until_ready:
            return [None] * len(rows)
        return [
            f"{self.rows[row].script_id}_{self.rows[row].base_id}" if row in self.rows else None
            for row in rows
        ]

    async def update_asset_video_links(self, spreadsheet_id: str, links: dict[str, str]) -> int:
        self.video_links.update(links)
        return len(links)

    async def update_script_status(self, spreadsheet_id: str, script_id: str, status: str) -> bool:
        self.script_statuses[script_id] = status
        return True

    async def append_campaign_report(
        self, spreadsheet_id: str, rows: list[CampaignReportRow]
    ) -> None:
        self.campaign_rows.extend(rows)
