"""System settings: maintenance mode and temporary pausing."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, ClassVar, Protocol

log = logging.getLogger(__name__)

DEFAULT_PAUSE_DURATION = timedelta(minutes=1)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _stamp(moment: datetime | None) -> str | None:
    return moment.isoformat(timespec="microseconds") if moment is not None else None


def _parse(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


@dataclass
class Settings:
    """The system-wide settings record."""

    TABLE_NAME: ClassVar[str] = "system_settings"

    id: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None
    maintenance_mode: bool = False
    paused_since: datetime | None = None

    def __str__(self) -> str:
        return f"MaintenanceMode: {str(self.maintenance_mode).lower()}"

    def to_json(self) -> dict[str, Any]:
        """The publicly exposed settings."""
        return {"maintenanceMode": self.maintenance_mode}

    def from_json(self, data: dict[str, Any]) -> None:
        """Update fields from the public representation."""
        self.maintenance_mode = bool(data.get("maintenanceMode", False))

    def is_paused(self, pause_duration: timedelta) -> bool:
        """True if paused within the last pause_duration."""
        return self.paused_since is not None and self.paused_since > _now() - pause_duration


class SettingsStore(Protocol):
    """Storage for the settings record."""

    def get_settings(self) -> Settings:
        """Return the settings, creating them if missing."""

    def save_settings(self, settings: Settings) -> None:
        """Persist the settings."""


_COLUMNS = '"id", "created_at", "updated_at", "deleted_at", "maintenance_mode", "paused_since"'


class SqliteSettingsStore:
    """Settings kept in the system_settings table."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection

    def get_settings(self) -> Settings:
        with self._connection:
            row = self._connection.execute(
                f'SELECT {_COLUMNS} FROM "system_settings" '
                'WHERE "deleted_at" IS NULL ORDER BY "id" LIMIT 1'
            ).fetchone()
            if row is None:
                settings = Settings()
                self._insert(settings)
                return settings
        return Settings(
            id=row[0],
            created_at=_parse(row[1]),
            updated_at=_parse(row[2]),
            deleted_at=_parse(row[3]),
            maintenance_mode=bool(row[4]),
            paused_since=_parse(row[5]),
        )

    def _insert(self, settings: Settings) -> None:
        now = _now()
        settings.created_at = settings.created_at or now
        settings.updated_at = now
        cursor = self._connection.execute(
            'INSERT INTO "system_settings" ("created_at", "updated_at", "deleted_at", '
            '"maintenance_mode", "paused_since") VALUES (?, ?, ?, ?, ?)',
            (
                _stamp(settings.created_at),
                _stamp(settings.updated_at),
                _stamp(settings.deleted_at),
                int(settings.maintenance_mode),
                _stamp(settings.paused_since),
            ),
        )
        settings.id = cursor.lastrowid

    def save_settings(self, settings: Settings) -> None:
        with self._connection:
            if not settings.id:
                self._insert(settings)
                return
            settings.updated_at = _now()
            cursor = self._connection.execute(
                'UPDATE "system_settings" SET "created_at" = ?, "updated_at" = ?, '
                '"deleted_at" = ?, "maintenance_mode" = ?, "paused_since" = ? WHERE "id" = ?',
                (
                    _stamp(settings.created_at),
                    _stamp(settings.updated_at),
                    _stamp(settings.deleted_at),
                    int(settings.maintenance_mode),
                    _stamp(settings.paused_since),
                    settings.id,
                ),
            )
            if cursor.rowcount == 0:
                self._insert(settings)


class SystemService:
    """Reads and changes system settings, and tells whether work is halted."""

    def __init__(
        self, store: SettingsStore, pause_duration: timedelta = DEFAULT_PAUSE_DURATION
    ) -> None:
        self.store = store
        self.pause_duration = pause_duration

    def get_settings(self) -> Settings:
        return self.store.get_settings()

    def save_settings(self, settings: Settings) -> None:
        if settings.id == 0:
            raise ValueError(
                "settings object has no ID, get an existing settings first and alter it"
            )
        log.debug("Save system settings: %s", settings)
        self.store.save_settings(settings)

    def pause(self) -> None:
        """Pause the system for the configured duration."""
        settings = self.get_settings()
        settings.paused_since = _now()
        self.save_settings(settings)

    def resume(self) -> None:
        """Lift a pause immediately."""
        settings = self.get_settings()
        settings.paused_since = None
        self.save_settings(settings)

    def is_halted(self) -> bool:
        """True in maintenance mode or while paused."""
        settings = self.get_settings()
        return settings.maintenance_mode or settings.is_paused(self.pause_duration)