"""Settings service merging ``.env`` files with the process environment."""

from __future__ import annotations

import logging
import os
from collections import OrderedDict
from threading import RLock
from types import SimpleNamespace
from typing import Mapping, Optional

from . import settings_io

LOGGER = logging.getLogger(__name__)

DEFAULTS: "OrderedDict[str, str]" = OrderedDict(
    [
        ("DIRECTUS_URL", "http://localhost:8055"),
        ("DIRECTUS_TOKEN", ""),
        ("DIRECTUS_ACCESS_TOKEN", ""),
        ("DIRECTUS_STATIC_TOKEN", ""),
        ("DIRECTUS_TIMEOUT", "60"),
        ("DIRECTUS_PAGE_SIZE", "500"),
        ("DIRECTUS_MAX_PAGES", "200"),
        ("DIRECTUS_RETRY_ATTEMPTS", "4"),
        ("DIRECTUS_RETRY_BACKOFF", "0.5"),
        ("FETCH_WORKERS", "12"),
        ("LOG_LEVEL", "INFO"),
        ("LOG_FILE", ""),
    ]
)

INT_KEYS = {
    "DIRECTUS_PAGE_SIZE",
    "DIRECTUS_MAX_PAGES",
    "DIRECTUS_RETRY_ATTEMPTS",
    "FETCH_WORKERS",
}
FLOAT_KEYS = {"DIRECTUS_TIMEOUT", "DIRECTUS_RETRY_BACKOFF"}


class SettingsStore:
    """Hold the application configuration as a typed namespace."""

    def __init__(self) -> None:
        self._lock = RLock()
        self._values: "OrderedDict[str, str]" = OrderedDict()
        self._namespace: Optional[SimpleNamespace] = None
        self._loaded = False

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        with self._lock:
            if self._loaded:
                return

            env_values = settings_io.load_settings(
                example_path=settings_io.EXAMPLE_PATH,
                env_path=settings_io.ENV_PATH,
                logger=lambda message, error: LOGGER.debug(message),
            )

            values = OrderedDict(DEFAULTS)
            values.update(env_values)
            # The process environment wins over anything read from files.
            for key in list(values.keys()):
                if key in os.environ:
                    values[key] = os.environ[key]

            self._values = OrderedDict(
                (key, "" if value is None else str(value))
                for key, value in values.items()
            )
            self._namespace = self._build_namespace(self._values)
            self._loaded = True

    def _build_namespace(self, values: Mapping[str, str]) -> SimpleNamespace:
        processed_values = {}
        for key, value in values.items():
            if key in INT_KEYS:
                try:
                    processed_values[key] = int(value)
                except (ValueError, TypeError):
                    LOGGER.warning("Invalid integer for %s: %r", key, value)
                    processed_values[key] = int(DEFAULTS[key])
            elif key in FLOAT_KEYS:
                try:
                    processed_values[key] = float(value)
                except (ValueError, TypeError):
                    LOGGER.warning("Invalid number for %s: %r", key, value)
                    processed_values[key] = float(DEFAULTS[key])
            else:
                processed_values[key] = value
        return SimpleNamespace(**processed_values)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    @property
    def settings(self) -> SimpleNamespace:
        self._ensure_loaded()
        assert self._namespace is not None
        return self._namespace

    def as_ordered_dict(self, *, include_secrets: bool = False) -> "OrderedDict[str, str]":
        self._ensure_loaded()
        return OrderedDict(
            (key, value)
            for key, value in self._values.items()
            if include_secrets or key not in settings_io.SECRET_KEYS
        )

    def update(self, values: Mapping[str, Optional[str]]) -> None:
        """Override values in memory, e.g. from an app factory mapping."""

        self._ensure_loaded()
        with self._lock:
            changed = False
            for key, value in values.items():
                if value is None:
                    if key in self._values:
                        self._values[key] = DEFAULTS.get(key, "")
                        changed = True
                    continue
                str_value = str(value)
                if self._values.get(key) == str_value:
                    continue
                self._values[key] = str_value
                changed = True
            if changed:
                self._namespace = self._build_namespace(self._values)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Return a raw configuration value."""

        self._ensure_loaded()
        return self._values.get(key, default)

    def reload(self) -> None:
        """Force reload settings from ``.env`` files and the environment."""
        with self._lock:
            self._loaded = False
        self._ensure_loaded()


settings_store = SettingsStore()

__all__ = ["settings_store", "SettingsStore", "DEFAULTS"]
