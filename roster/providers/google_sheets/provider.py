"""Google Sheets roster provider."""

import asyncio
import time
from typing import Any, List, Optional

import google.auth
import structlog
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from httplib2 import HttpLib2Error

from roster.base import RosterProvider, RosterMember, RosterHealthStatus, RosterServiceError
from .config import GoogleSheetsConfig

logger = structlog.get_logger()

# Client errors that a retry will not fix
NON_RETRYABLE_STATUSES = {400, 401, 403, 404}

# Roster column order: full name, national ID, student number, phone, department, date
COLUMNS = ("full_name", "national_id", "student_number", "phone", "department", "joined_on")


def _cell_to_str(value: Any) -> str:
    """Render a sheet cell as text; whole floats lose their '.0'."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def parse_member_rows(rows: List[List[Any]]) -> tuple[List[RosterMember], List[str]]:
    """
    Parse raw sheet rows into roster members.

    The first row is the header. Rows without a full name or student number
    are skipped and reported.

    Returns:
        Tuple of (members, errors)
    """
    members: List[RosterMember] = []
    errors: List[str] = []

    for index, row in enumerate(rows[1:], start=2):
        cells = {name: _cell_to_str(row[i]) if i < len(row) else "" for i, name in enumerate(COLUMNS)}

        if not cells["full_name"] or not cells["student_number"]:
            errors.append(f"Row {index}: Missing required fields")
            continue

        members.append(
            RosterMember(
                full_name=cells["full_name"],
                student_number=cells["student_number"],
                national_id=cells["national_id"] or None,
                phone=cells["phone"] or None,
                department=cells["department"] or None,
                joined_on=cells["joined_on"] or None,
                row_number=index,
            )
        )

    return members, errors


class GoogleSheetsProvider(RosterProvider):
    """Roster provider reading a Google Sheets range."""

    provider_name = "google_sheets"

    def __init__(self, config: GoogleSheetsConfig):
        """Initialize Google Sheets provider.

        Args:
            config: Google Sheets configuration
        """
        self.config = config
        self._service = None
        self._rows: Optional[List[List[Any]]] = None
        self._rows_fetched_at: float = 0

    async def initialize(self) -> None:
        """Build the Sheets API client."""
        if self._service is not None:
            return

        if not self.config.spreadsheet_id:
            raise RosterServiceError("Roster spreadsheet is not configured")

        try:
            self._service = await asyncio.to_thread(self._build_service)
        except (GoogleAuthError, OSError, ValueError) as e:
            raise RosterServiceError(f"Could not initialize Google Sheets client: {e}") from e

        logger.info("Google Sheets provider initialized", spreadsheet_id=self.config.spreadsheet_id)

    async def close(self) -> None:
        """Drop the client and cached rows."""
        self._service = None
        self._rows = None
        logger.info("Google Sheets provider closed")

    async def health_check(self) -> RosterHealthStatus:
        """Check that the roster range can be read."""
        try:
            rows = await self._fetch_rows(use_cache=False)
            return RosterHealthStatus(
                healthy=True,
                message="Roster spreadsheet is reachable",
                details={
                    "spreadsheet_id": self.config.spreadsheet_id,
                    "range": self.config.range,
                    "rows": max(len(rows) - 1, 0),
                },
            )
        except RosterServiceError as e:
            logger.error("Roster health check failed", error=str(e))
            return RosterHealthStatus(
                healthy=False,
                message=f"Roster spreadsheet unavailable: {e}",
                details={"error": str(e)},
            )

    async def get_members(self) -> List[RosterMember]:
        """Fetch and parse all roster rows."""
        rows = await self._fetch_rows()
        members, errors = parse_member_rows(rows)
        if errors:
            logger.warning("Skipped invalid roster rows", count=len(errors), first=errors[0])
        return members

    def _build_service(self):
        scopes = list(self.config.scopes)
        if self.config.service_account_file:
            credentials = service_account.Credentials.from_service_account_file(
                self.config.service_account_file, scopes=scopes
            )
        else:
            credentials, _ = google.auth.default(scopes=scopes)
        return build("sheets", "v4", credentials=credentials, cache_discovery=False)

    def _read_values(self) -> List[List[Any]]:
        response = (
            self._service.spreadsheets()
            .values()
            .get(
                spreadsheetId=self.config.spreadsheet_id,
                range=self.config.range,
                valueRenderOption="UNFORMATTED_VALUE",
                dateTimeRenderOption="FORMATTED_STRING",
            )
            .execute()
        )
        return response.get("values", [])

    async def _fetch_rows(self, use_cache: bool = True) -> List[List[Any]]:
        """Read the roster range with retries, serving from cache when fresh."""
        if use_cache and self._rows is not None:
            if time.monotonic() - self._rows_fetched_at < self.config.cache_ttl:
                return self._rows

        await self.initialize()

        last_error: Optional[Exception] = None
        for attempt in range(1, self.config.max_retries + 1):
            try:
                rows = await asyncio.to_thread(self._read_values)
            except HttpError as e:
                last_error = e
                if e.resp.status in NON_RETRYABLE_STATUSES:
                    break
            except (HttpLib2Error, GoogleAuthError, OSError) as e:
                last_error = e
            else:
                self._rows = rows
                self._rows_fetched_at = time.monotonic()
                logger.info("Read roster rows", count=len(rows))
                return rows

            logger.warning(
                "Roster read failed",
                attempt=attempt,
                max_retries=self.config.max_retries,
                error=str(last_error),
            )
            if attempt < self.config.max_retries:
                await asyncio.sleep(self.config.retry_delay * attempt)

        raise RosterServiceError(f"Could not read roster spreadsheet: {last_error}") from last_error
