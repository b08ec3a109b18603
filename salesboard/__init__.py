"""Executive sales dashboard service backed by a Directus data store."""

from .config import settings

__all__ = ["settings"]
