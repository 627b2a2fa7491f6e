"""Spreadsheet ledger adapters."""

from creative_engine.adapters.ledger.base import (
    AssetLedgerEntry,
    CampaignReportRow,
    LedgerAdapter,
    extract_spreadsheet_id,
)
from creative_engine.adapters.ledger.google_sheets import GoogleSheetsLedger
from creative_engine.adapters.ledger.stub import StubLedger

__all__ = [
    "AssetLedgerEntry",
    "CampaignReportRow",
    "LedgerAdapter",
    "extract_spreadsheet_id",
    "GoogleSheetsLedger",
    "StubLedger",
]
