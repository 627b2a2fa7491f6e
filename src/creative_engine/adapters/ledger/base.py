"""Base interface for the spreadsheet-backed asset ledger."""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass

_SPREADSHEET_URL = re.compile(r"/spreadsheets/d/([A-Za-z0-9_-]+)")


def extract_spreadsheet_id(value: str) -> str:
    """Spreadsheet id from a sheet URL, or the value itself."""
    match = _SPREADSHEET_URL.search(value)
    return match.group(1) if match else value.strip()


@dataclass
class AssetLedgerEntry:
    """One (footage, script) row in the asset ledger."""

    base_id: str
    script_id: str
    subtitled: bool = False


@dataclass
class CampaignReportRow:
    """A created ad, as appended to the campaign report tab."""

    campaign_name: str
    ad_id: str
    ad_name: str


class LedgerAdapter(ABC):
    """Abstract base class for the asset ledger.

    The ledger assigns output file names itself (formula columns), so names
    appear some time after rows are written. Callers write, then read back
    with ``read_file_names`` until every name is populated.

    Implementations:
    - GoogleSheetsLedger: Google Sheets v4 API
    - StubLedger: In-memory ledger for tests and local runs
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        ...

    @abstractmethod
    async def write_asset_entries(
        self, spreadsheet_id: str, entries: list[AssetLedgerEntry]
    ) -> list[int]:
        """Write entries into the first free rows; returns the row numbers used."""
        ...

    @abstractmethod
    async def read_file_names(self, spreadsheet_id: str, rows: list[int]) -> list[str | None]:
        """Generated file name for each row, None where not yet populated."""
        ...

    @abstractmethod
    async def update_asset_video_links(
        self, spreadsheet_id: str, links: dict[str, str]
    ) -> int:
        """Set the video link for ledger rows keyed by file name; returns rows updated."""
        ...

    @abstractmethod
    async def update_script_status(self, spreadsheet_id: str, script_id: str, status: str) -> bool:
        """Set the review status of a script row; returns whether the row was found."""
        ...

    @abstractmethod
    async def append_campaign_report(
        self, spreadsheet_id: str, rows: list[CampaignReportRow]
    ) -> None:
        """Append created ads to the campaign report tab."""
        ...

    async def health_check(self) -> bool:
        return True
