"""Google API client construction (Drive and Sheets)."""

import json
from pathlib import Path
from typing import Any

import google.auth
from google.auth.exceptions import DefaultCredentialsError
from google.oauth2.service_account import Credentials as ServiceAccountCredentials
from googleapiclient.discovery import build

from creative_engine.config import settings
from creative_engine.errors import ConfigurationError

SCOPES = [
    "https://www.googleapis.com/auth/drive",
    "https://www.googleapis.com/auth/spreadsheets",
]


def get_google_credentials(credentials_file: str | None = None) -> Any:
    """Service account credentials from a key file, else application defaults.

    Raises:
        ConfigurationError: If no credentials are available.
    """
    key_file = credentials_file or settings.google_application_credentials
    if key_file:
        path = Path(key_file)
        if not path.exists():
            raise ConfigurationError(f"Google credentials file not found: {key_file}")
        info = json.loads(path.read_text(encoding="utf-8"))
        return ServiceAccountCredentials.from_service_account_info(info, scopes=SCOPES)

    try:
        creds, _ = google.auth.default(scopes=SCOPES)
    except DefaultCredentialsError as exc:
        raise ConfigurationError(
            "Google auth not configured. Set GOOGLE_APPLICATION_CREDENTIALS to a "
            "service account key or configure application default credentials."
        ) from exc
    return creds


def build_service(api: str, version: str, credentials: Any) -> Any:
    """Build a discovery client; clients are not thread-safe, so build one per call."""
    return build(api, version, credentials=credentials, cache_discovery=False)
