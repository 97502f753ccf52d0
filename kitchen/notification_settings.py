"""Persisted sound preferences read by the notification coordinator."""

from __future__ import annotations

import logging

from kitchen.config import DEFAULT_SOUND_ENABLED, DEFAULT_VOLUME, NOTIFICATION_SETTINGS_KEY
from kitchen.models import NotificationSettings, clamp_volume
from kitchen.persistence import KeyValueStore

logger = logging.getLogger(__name__)


class NotificationSettingsStore:
    """Read-write access to `{"soundEnabled", "volume"}` in the local store."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def load(self) -> NotificationSettings:
        raw = self.store.get(NOTIFICATION_SETTINGS_KEY)
        if raw is None:
            return NotificationSettings(DEFAULT_SOUND_ENABLED, DEFAULT_VOLUME)
        if not isinstance(raw, dict):
            logger.warning("ignoring corrupt notification settings: %r", raw)
            return NotificationSettings(DEFAULT_SOUND_ENABLED, DEFAULT_VOLUME)
        sound_enabled = raw.get("soundEnabled", DEFAULT_SOUND_ENABLED)
        return NotificationSettings(
            sound_enabled=sound_enabled if isinstance(sound_enabled, bool) else DEFAULT_SOUND_ENABLED,
            volume=clamp_volume(raw.get("volume", DEFAULT_VOLUME)),
        )

    def save(self, settings: NotificationSettings) -> NotificationSettings:
        self.store.set(
            NOTIFICATION_SETTINGS_KEY,
            {"soundEnabled": settings.sound_enabled, "volume": settings.volume},
        )
        return settings

    def set_sound_enabled(self, enabled: bool) -> NotificationSettings:
        current = self.load()
        return self.save(NotificationSettings(bool(enabled), current.volume))

    def toggle_sound(self) -> NotificationSettings:
        return self.set_sound_enabled(not self.load().sound_enabled)

    def set_volume(self, volume: int) -> NotificationSettings:
        current = self.load()
        return self.save(NotificationSettings(current.sound_enabled, clamp_volume(volume)))
