"""Setting model for system configuration key-value store."""

from sqlalchemy import Column, Integer, String, DateTime, Text, Index

from api.config.database import Base
from .base import utcnow


class Setting(Base):
    """
    System configuration key-value store.

    Stores application settings that can be modified at runtime.
    """

    __tablename__ = "settings"

    id = Column(Integer, primary_key=True, autoincrement=True)

    key = Column(String(100), nullable=False, unique=True)
    value = Column(Text, nullable=False)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, onupdate=utcnow)

    __table_args__ = (
        Index("idx_settings_key", "key"),
    )

    def __repr__(self) -> str:
        return f"<Setting(key={self.key})>"


# Default settings to seed. An empty value falls back to the environment.
DEFAULT_SETTINGS = {
    "roster_enabled": ("", "Check applicants against the roster spreadsheet (true/false)"),
    "roster_spreadsheet": ("", "Roster Google Sheets URL or spreadsheet ID"),
    "roster_range": ("", "Roster sheet range, e.g. Sheet1!A:F"),
}
