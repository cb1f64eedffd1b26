"""User-adjustable sync settings and their persistence."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, replace
from typing import Callable

from chat_sync.storage import SETTINGS_KEY, KeyValueStore, load_json, save_json

LOGGER = logging.getLogger(__name__)

DEFAULT_ENDPOINT_URL = "http://localhost:4000/st-sync"

# Python attribute -> persisted camelCase key
PERSISTED_KEYS: dict[str, str] = {
    "enabled": "enabled",
    "endpoint_url": "endpointUrl",
    "realtime_sync": "realtimeSync",
    "full_conversation_sync": "fullConversationSync",
    "idle_timeout_minutes": "idleTimeoutMinutes",
    "offline_buffer_enabled": "offlineBufferEnabled",
    "max_buffer_size": "maxBufferSize",
    "dedup_enabled": "dedupEnabled",
    "notify_on_success": "notifyOnSuccess",
    "notify_on_error": "notifyOnError",
    "last_sync_time": "lastSyncTime",
    "user_display_name": "userDisplayName",
    "request_timeout_seconds": "requestTimeoutSeconds",
}

_ATTRIBUTE_FOR_KEY = {persisted: attr for attr, persisted in PERSISTED_KEYS.items()}


@dataclass
class SyncSettings:
    """Process-wide sync configuration."""

    enabled: bool = True
    endpoint_url: str = DEFAULT_ENDPOINT_URL
    realtime_sync: bool = True
    full_conversation_sync: bool = True
    idle_timeout_minutes: int = 5
    offline_buffer_enabled: bool = True
    max_buffer_size: int = 100
    dedup_enabled: bool = True
    notify_on_success: bool = True
    notify_on_error: bool = False  # noisy while offline
    last_sync_time: str | None = None
    user_display_name: str = "User"
    request_timeout_seconds: float | None = None

    def __post_init__(self) -> None:
        if not self.endpoint_url:
            self.endpoint_url = DEFAULT_ENDPOINT_URL
        self.idle_timeout_minutes = max(1, int(self.idle_timeout_minutes))
        self.max_buffer_size = max(1, int(self.max_buffer_size))

    @property
    def idle_timeout_seconds(self) -> float:
        return self.idle_timeout_minutes * 60.0

    @classmethod
    def from_dict(cls, data: dict) -> "SyncSettings":
        """Overlay a persisted (possibly partial) blob on top of the defaults."""
        known: dict = {}
        for key, value in data.items():
            attr = _ATTRIBUTE_FOR_KEY.get(key) or (key if key in PERSISTED_KEYS else None)
            if attr is None:
                LOGGER.debug("Ignoring unknown setting %s", key)
                continue
            if value is None and attr not in ("last_sync_time", "request_timeout_seconds"):
                continue
            known[attr] = value
        try:
            return cls(**known)
        except (TypeError, ValueError) as exc:
            LOGGER.warning("Invalid persisted settings, using defaults: %s", exc)
            return cls()

    def to_dict(self) -> dict:
        return {PERSISTED_KEYS[name]: value for name, value in asdict(self).items()}


def resolve_setting_name(name: str) -> str:
    """Map a camelCase or snake_case setting name to the attribute name."""
    if name in PERSISTED_KEYS:
        return name
    if name in _ATTRIBUTE_FOR_KEY:
        return _ATTRIBUTE_FOR_KEY[name]
    normalized = name.replace("-", "_")
    if normalized in PERSISTED_KEYS:
        return normalized
    raise KeyError(name)


def parse_setting_value(name: str, raw: str) -> object:
    """Parse a textual value for the named setting."""
    attr = resolve_setting_name(name)
    default = getattr(SyncSettings(), attr)
    if attr in ("last_sync_time", "request_timeout_seconds") and raw.lower() in ("", "none", "null"):
        return None
    if isinstance(default, bool):
        lowered = raw.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
        raise ValueError(f"{attr} expects a boolean, got {raw!r}")
    if isinstance(default, int):
        return int(raw)
    if attr == "request_timeout_seconds":
        return float(raw)
    return raw


class SettingsStore:
    """Loads, mutates and persists SyncSettings."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self._listeners: list[Callable[[SyncSettings], None]] = []
        self.settings = self.load()

    def add_listener(self, listener: Callable[[SyncSettings], None]) -> None:
        """Call ``listener`` with the new settings after every update."""
        self._listeners.append(listener)

    def load(self) -> SyncSettings:
        data = load_json(self._store, SETTINGS_KEY, dict, expected_type=dict)
        settings = SyncSettings.from_dict(data)
        # Persist the backfilled defaults so upgrades see every key
        save_json(self._store, SETTINGS_KEY, settings.to_dict())
        return settings

    def save(self) -> None:
        save_json(self._store, SETTINGS_KEY, self.settings.to_dict())

    def update(self, **changes: object) -> SyncSettings:
        """Apply changes by attribute name and persist immediately."""
        resolved = {resolve_setting_name(name): value for name, value in changes.items()}
        self.settings = replace(self.settings, **resolved)
        self.save()
        LOGGER.debug("Settings updated: %s", ", ".join(sorted(resolved)))
        for listener in self._listeners:
            listener(self.settings)
        return self.settings

    def record_sync(self, timestamp: str) -> None:
        self.settings.last_sync_time = timestamp
        self.save()
