"""Runtime settings stored in the settings table."""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from api.config.settings import settings
from api.models import Setting, DEFAULT_SETTINGS

TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class RosterSettings:
    """Effective roster configuration for one request."""

    enabled: bool
    spreadsheet: str
    range: str
    service_account_file: Optional[str]
    timeout: float
    cache_ttl: int

    @property
    def configured(self) -> bool:
        return bool(self.spreadsheet)


def get_setting_value(db: Session, key: str, default: str = "") -> str:
    """Get a setting value from database."""
    setting = db.query(Setting).filter(Setting.key == key).first()
    if setting and setting.value != "":
        return setting.value
    return DEFAULT_SETTINGS.get(key, (default, ""))[0] or default


def set_setting_value(db: Session, key: str, value: str) -> None:
    """Set a setting value in database (caller commits)."""
    setting = db.query(Setting).filter(Setting.key == key).first()
    if setting:
        setting.value = value
    else:
        description = DEFAULT_SETTINGS.get(key, ("", ""))[1]
        setting = Setting(key=key, value=value, description=description)
        db.add(setting)


def get_roster_settings(db: Session) -> RosterSettings:
    """Database overrides first, environment as fallback."""
    enabled_default = "true" if settings.ROSTER_ENABLED else "false"
    return RosterSettings(
        enabled=get_setting_value(db, "roster_enabled", enabled_default).lower() in TRUE_VALUES,
        spreadsheet=get_setting_value(db, "roster_spreadsheet", settings.GOOGLE_SHEETS_SPREADSHEET),
        range=get_setting_value(db, "roster_range", settings.GOOGLE_SHEETS_RANGE),
        service_account_file=settings.GOOGLE_SERVICE_ACCOUNT_FILE,
        timeout=settings.ROSTER_TIMEOUT_SECONDS,
        cache_ttl=settings.ROSTER_CACHE_TTL_SECONDS,
    )
