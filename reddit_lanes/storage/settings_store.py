"""Owned, persisted store for process-wide application settings."""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from pydantic import AliasChoices, ValidationError

from reddit_lanes.models.settings import AppSettings, Theme
from reddit_lanes.storage.state_store import StateStore

logger = logging.getLogger(__name__)

SETTINGS_KEY = "appSettings"

SettingsListener = Callable[[AppSettings, AppSettings], None]


def _field_lookup() -> Dict[str, str]:
    """Map every accepted input key (field name or alias) to its field name."""
    lookup = {}
    for name, info in AppSettings.model_fields.items():
        lookup[name] = name
        if info.alias:
            lookup[info.alias] = name
        if isinstance(info.validation_alias, AliasChoices):
            for choice in info.validation_alias.choices:
                if isinstance(choice, str):
                    lookup[choice] = name
        elif isinstance(info.validation_alias, str):
            lookup[info.validation_alias] = name
    return lookup


_FIELD_LOOKUP = _field_lookup()


class SettingsStore:
    """
    Holds the current AppSettings.

    ``update`` is the single mutation entry point: it merges, persists
    synchronously and then notifies subscribers. Lanes only read.
    """

    def __init__(self, state_store: StateStore, key: str = SETTINGS_KEY):
        """
        Load settings from persisted state, falling back to defaults.

        Args:
            state_store: Backing store for the settings blob
            key: Blob key the settings are stored under
        """
        self.state_store = state_store
        self.key = key
        self._listeners: List[SettingsListener] = []
        self._settings = self._load()

    def _load(self) -> AppSettings:
        raw = self.state_store.get(self.key)
        if raw is None:
            return AppSettings()
        if not isinstance(raw, dict):
            logger.warning(f"Ignoring malformed settings blob of type {type(raw).__name__}")
            return AppSettings()
        try:
            return AppSettings.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed settings blob: {e}")
            return AppSettings()

    def get(self) -> AppSettings:
        return self._settings

    def update(self, partial: Optional[Mapping[str, Any]] = None, **fields: Any) -> AppSettings:
        """
        Shallow-merge ``partial`` (and/or keyword fields) into the settings.

        Keys may be field names (``auto_refresh``) or persisted names
        (``autoRefresh``).

        Returns:
            The new settings

        Raises:
            KeyError: If a key is not a known setting
            pydantic.ValidationError: If a value has the wrong type shape
        """
        changes: Dict[str, Any] = {}
        for key, value in {**(partial or {}), **fields}.items():
            if key not in _FIELD_LOOKUP:
                raise KeyError(f"Unknown setting: {key}")
            changes[_FIELD_LOOKUP[key]] = value

        previous = self._settings
        updated = AppSettings.model_validate({**previous.model_dump(), **changes})

        self.state_store.set(self.key, updated.to_blob())
        self._settings = updated
        logger.info(f"Settings updated: {', '.join(sorted(changes)) or 'no changes'}")

        for listener in list(self._listeners):
            listener(previous, updated)
        return updated

    def subscribe(self, listener: SettingsListener) -> Callable[[], None]:
        """
        Register a callback invoked as ``listener(previous, current)`` after each update.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def toggle_theme(self) -> AppSettings:
        theme = Theme.DARK if self._settings.theme == Theme.LIGHT else Theme.LIGHT
        return self.update(theme=theme)

    def toggle_auto_refresh(self) -> AppSettings:
        return self.update(auto_refresh=not self._settings.auto_refresh)
