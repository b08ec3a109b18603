"""Helpers for loading configuration values from ``.env`` files."""

from __future__ import annotations

from collections import OrderedDict
from pathlib import Path
from typing import Callable, Mapping, Optional

from dotenv import dotenv_values

ROOT_DIR = Path(__file__).resolve().parents[1]
ENV_PATH = ROOT_DIR / ".env"
EXAMPLE_PATH = ROOT_DIR / ".env.example"

# Values that must never be echoed back in diagnostics payloads.
SECRET_KEYS = {"DIRECTUS_TOKEN", "DIRECTUS_ACCESS_TOKEN", "DIRECTUS_STATIC_TOKEN"}


def _handle_error(
    error: Exception,
    *,
    logger: Optional[Callable[[str, Exception], None]] = None,
    on_error: Optional[Callable[[str], None]] = None,
    message: str,
) -> None:
    if logger is not None:
        logger(message, error)
    if on_error is not None:
        on_error(message)


def _load_values(path: Path) -> Mapping[str, Optional[str]]:
    try:
        return dotenv_values(path)
    except OSError:
        return {}


def load_settings(
    *,
    example_path: Path = EXAMPLE_PATH,
    env_path: Path = ENV_PATH,
    logger: Optional[Callable[[str, Exception], None]] = None,
    on_error: Optional[Callable[[str], None]] = None,
) -> "OrderedDict[str, str]":
    """Return merged configuration values from ``.env`` files.

    The values are based on ``.env.example`` for ordering and fall back to
    ``.env`` when present. Unknown keys from the current ``.env`` file are
    appended to the end of the ordered dictionary.
    """

    if not example_path.exists():
        _handle_error(
            FileNotFoundError(example_path),
            logger=logger,
            on_error=on_error,
            message=f"Settings template missing: {example_path}",
        )
        example: Mapping[str, Optional[str]] = {}
    else:
        example = _load_values(example_path)

    current = _load_values(env_path) if env_path.exists() else {}

    values: "OrderedDict[str, str]" = OrderedDict()

    for key in example.keys():
        values[key] = current.get(key, example[key]) or ""

    for key, val in current.items():
        if key not in values:
            values[key] = val or ""

    return values


__all__ = [
    "ENV_PATH",
    "EXAMPLE_PATH",
    "SECRET_KEYS",
    "load_settings",
]
