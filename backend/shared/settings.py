"""
Settings provider backed by the chat_settings table.

Settings are stored as strings keyed by setting_key. Boolean toggles use
"1" for enabled, matching what the admin settings screen writes.
"""

from typing import Any

from shared import config
from shared.db import DataStore, Query
from shared.utils import format_timestamp, is_valid_email, utc_now

SETTINGS_TABLE = "chat_settings"

# Fallbacks for retention_days_<kind> when the setting is unset
RETENTION_DEFAULTS = {
    "conversations": 90,
    "notifications": 30,
    "knowledge": 180,
}


class SettingsProvider:
    """Read and write chatbot settings rows."""

    def __init__(self, store: DataStore):
        self.store = store

    def _get_row(self, key: str) -> dict[str, Any] | None:
        return self.store.get_row(Query(SETTINGS_TABLE, eq={"setting_key": key}))

    def get(self, key: str, default: str | None = None) -> str | None:
        row = self._get_row(key)
        if not row or row.get("setting_value") is None:
            return default
        return str(row["setting_value"])

    def get_first(self, *keys: str, default: str | None = None) -> str | None:
        """Return the first set value among keys (current key first, legacy keys after)."""
        for key in keys:
            value = self.get(key)
            if value is not None and value != "":
                return value
        return default

    def get_bool(self, *keys: str, default: bool = False) -> bool:
        value = None
        for key in keys:
            value = self.get(key)
            if value is not None:
                break
        if value is None:
            return default
        return value.strip().lower() in ("1", "true", "yes", "on")

    def get_int(self, key: str, default: int) -> int:
        value = self.get(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            print(f"  ⚠️  Setting {key} is not an integer ({value!r}), using {default}")
            return default

    def get_list(self, key: str) -> list[str]:
        """Comma-separated setting as a list of trimmed, non-empty values."""
        value = self.get(key)
        if not value:
            return []
        return [item.strip() for item in value.split(",") if item.strip()]

    def get_admin_email(self) -> str | None:
        """
        Admin address from settings, falling back to the ADMIN_EMAIL config.

        Comma-separated lists use the first address.
        """
        email = self.get_first(
            "admin_notification_emails",
            "admin_notification_email",
            default=config.ADMIN_EMAIL,
        )
        if email and "," in email:
            email = email.split(",")[0].strip()
        return email if is_valid_email(email) else None

    def retention_days(self, kind: str) -> int:
        return self.get_int(f"retention_days_{kind}", RETENTION_DEFAULTS.get(kind, 30))

    def set(self, key: str, value: str) -> bool:
        """Upsert a setting row."""
        row = self._get_row(key)
        fields = {"setting_value": value, "updated_at": format_timestamp(utc_now())}
        if row:
            return self.store.update(SETTINGS_TABLE, fields, row["id"])
        fields["setting_key"] = key
        return self.store.insert(SETTINGS_TABLE, fields) is not None
