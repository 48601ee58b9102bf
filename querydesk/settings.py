"""SQLite database for storing querydesk settings."""

import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULTS = {
    "page_size": "10",
    "export_dir": "",
    "autocommit": "true",
    "db_type": "",
}

TRUE_VALUES = ("1", "true", "yes", "on")


def default_settings_path():
    return Path.home() / ".querydesk" / "settings.db"


class SettingsStore:
    def __init__(self, db_path=None):
        if db_path is None:
            db_path = default_settings_path()
        self.db_path = Path(db_path)
        self._init_db()

    def _get_conn(self):
        return sqlite3.connect(self.db_path)

    def _init_db(self):
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._get_conn() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT
                )
            """)
            conn.commit()

    def get_setting(self, key, default=None):
        with self._get_conn() as conn:
            cursor = conn.execute("SELECT value FROM settings WHERE key = ?", (key,))
            row = cursor.fetchone()
        if row:
            return row[0]
        if default is None:
            return DEFAULTS.get(key)
        return default

    def set_setting(self, key, value):
        with self._get_conn() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)",
                (key, str(value))
            )
            conn.commit()

    def delete_setting(self, key):
        with self._get_conn() as conn:
            conn.execute("DELETE FROM settings WHERE key = ?", (key,))
            conn.commit()

    def get_int(self, key, default=0):
        """Integer setting; unparsable values fall back to ``default``."""
        value = self.get_setting(key)
        try:
            return int(value)
        except (TypeError, ValueError):
            if value is not None:
                logger.warning("Setting %s=%r is not an integer, using %s", key, value, default)
            return default

    def get_bool(self, key, default=False):
        value = self.get_setting(key)
        if value is None:
            return default
        return value.strip().lower() in TRUE_VALUES

    def all_settings(self):
        """Defaults overlaid with stored values, sorted by key."""
        merged = dict(DEFAULTS)
        with self._get_conn() as conn:
            cursor = conn.execute("SELECT key, value FROM settings")
            merged.update(dict(cursor.fetchall()))
        return sorted(merged.items())

    def display_settings(self):
        """Settings for display, with password values masked."""
        return [
            (key, "******" if "password" in key.lower() else value)
            for key, value in self.all_settings()
        ]
