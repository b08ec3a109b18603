from typing import Optional

from .settings_store import settings_store

# Checked in order; the first non-empty value is used as the bearer token.
TOKEN_KEYS = ("DIRECTUS_TOKEN", "DIRECTUS_ACCESS_TOKEN", "DIRECTUS_STATIC_TOKEN")


def directus_base_url() -> str:
    """Return the Directus base URL without trailing slashes."""

    return (settings.DIRECTUS_URL or "").rstrip("/")


def directus_token() -> Optional[str]:
    for key in TOKEN_KEYS:
        value = (getattr(settings, key, "") or "").strip()
        if value:
            return value
    return None


class _SettingsProxy:
    """Dynamic proxy exposing the latest configuration values."""

    def __getattribute__(self, item):
        if item == "__dict__":
            return vars(settings_store.settings)
        return super().__getattribute__(item)

    def __getattr__(self, item):
        return getattr(settings_store.settings, item)

    def __setattr__(self, key, value):
        if key.startswith("_"):
            return super().__setattr__(key, value)
        settings_store.update({key: value})


settings = _SettingsProxy()
