"""Google Sheets roster configuration."""

import re
from dataclasses import dataclass
from typing import Optional

SPREADSHEET_URL_PATTERN = re.compile(r"/spreadsheets/d/([a-zA-Z0-9-_]+)")


def extract_spreadsheet_id(url_or_id: Optional[str]) -> Optional[str]:
    """
    Get the spreadsheet ID from a Google Sheets URL.

    Bare IDs (no scheme, longer than 20 characters) are returned as-is.
    """
    if not url_or_id:
        return None

    url_or_id = url_or_id.strip()
    if "http" not in url_or_id and len(url_or_id) > 20:
        return url_or_id

    match = SPREADSHEET_URL_PATTERN.search(url_or_id)
    return match.group(1) if match else None


@dataclass(frozen=True)
class GoogleSheetsConfig:
    """Configuration for reading the roster spreadsheet."""

    spreadsheet: str  # URL or spreadsheet ID
    range: str = "A:Z"

    # Service account key file; None = application default credentials
    service_account_file: Optional[str] = None

    # Retry settings
    max_retries: int = 3
    retry_delay: float = 1.0  # Seconds, multiplied by attempt number

    # Cache settings
    cache_ttl: int = 300  # Seconds

    scopes: tuple[str, ...] = ("https://www.googleapis.com/auth/spreadsheets.readonly",)

    @property
    def spreadsheet_id(self) -> Optional[str]:
        return extract_spreadsheet_id(self.spreadsheet)
