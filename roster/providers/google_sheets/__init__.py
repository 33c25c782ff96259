"""Google Sheets roster provider."""

from .provider import GoogleSheetsProvider, parse_member_rows
from .config import GoogleSheetsConfig, extract_spreadsheet_id

__all__ = ["GoogleSheetsProvider", "GoogleSheetsConfig", "parse_member_rows", "extract_spreadsheet_id"]
