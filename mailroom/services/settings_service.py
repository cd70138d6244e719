"""
Key/value settings editable from the dashboard.

Only keys that already exist can be updated; the known keys are seeded by
`ensure_defaults()` when the schema is created.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from mailroom.repositories.sql_repository import SQLRepository

logger = logging.getLogger(__name__)

TIMELINES_WEBHOOK_KEY = "timelinesai_webhook_url"
WHATSAPP_CONTACT_KEY = "whatsapp_contact"
DEFAULT_WHATSAPP_CONTACT = "85294738464"

# key -> (label, placeholder, default value, description)
KNOWN_SETTINGS: dict[str, tuple[str, str, str | None, str]] = {
    TIMELINES_WEBHOOK_KEY: (
        "TimelinesAI Webhook URL",
        "輸入 TimelinesAI Inbound Webhook URL",
        None,
        "TimelinesAI inbound webhook used for WhatsApp notifications",
    ),
    WHATSAPP_CONTACT_KEY: (
        "WhatsApp 聯絡號碼",
        "輸入 WhatsApp 號碼 (連區號，例如 85291234567)",
        DEFAULT_WHATSAPP_CONTACT,
        "Number shown on the public lookup page",
    ),
}


class SettingNotFoundError(Exception):
    pass


@dataclass
class SettingView:
    key: str
    value: str
    description: str
    label: str
    placeholder: str


@dataclass
class SettingsService:
    repository: SQLRepository = field(default_factory=SQLRepository)

    def ensure_defaults(self) -> int:
        created = 0
        for key, (_label, _placeholder, default, description) in KNOWN_SETTINGS.items():
            if self.repository.ensure_setting(key, default, description):
                created += 1
        if created:
            logger.info("Seeded %d settings", created)
        return created

    def list_settings(self) -> list[SettingView]:
        views = []
        for setting in self.repository.list_settings():
            label, placeholder, _default, _description = KNOWN_SETTINGS.get(
                setting.key, (setting.key, f"輸入 {setting.key}", None, "")
            )
            views.append(
                SettingView(
                    key=setting.key,
                    value=setting.value or "",
                    description=setting.description or "",
                    label=label,
                    placeholder=placeholder,
                )
            )
        return views

    def update(self, key: str, value: str | None) -> None:
        key_value = (key or "").strip()
        if not key_value or not self.repository.update_setting_value(key_value, (value or "").strip()):
            raise SettingNotFoundError(key_value)
        logger.info("Setting %s updated", key_value)

    def get_value(self, key: str, default: str | None = None) -> str | None:
        setting = self.repository.get_setting(key)
        if not setting or not setting.value:
            return default
        return setting.value

    def whatsapp_link(self) -> str:
        number = "".join(ch for ch in (self.get_value(WHATSAPP_CONTACT_KEY, DEFAULT_WHATSAPP_CONTACT) or "") if ch.isdigit())
        return f"https://wa.me/{number or DEFAULT_WHATSAPP_CONTACT}"
