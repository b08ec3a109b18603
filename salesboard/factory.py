"""Application factory for the salesboard package."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from flask import Flask

from .config import settings
from .settings_store import settings_store
from .sales import bp as sales_bp
from .diagnostics import bp as diagnostics_bp

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def configure_logging(log_level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """Attach console and optional file handlers to the root logger."""

    formatter = logging.Formatter(LOG_FORMAT)
    level = getattr(logging, str(log_level or "INFO").upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Ensure we have a stream handler for console output.
    if not any(
        type(handler) is logging.StreamHandler for handler in root_logger.handlers
    ):
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        root_logger.addHandler(stream_handler)

    # Replace existing file handlers so updates to LOG_FILE take effect.
    file_handlers = [h for h in root_logger.handlers if isinstance(h, logging.FileHandler)]
    for handler in file_handlers:
        root_logger.removeHandler(handler)
        handler.close()
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def create_app(config: Optional[Mapping[str, Any]] = None) -> Flask:
    """Create and configure a :class:`Flask` application instance.

    Upper-case keys of ``config`` that are known settings (``DIRECTUS_URL``,
    ``DIRECTUS_TOKEN``...) override the values loaded from ``.env``.
    """

    app = Flask(__name__)

    if config:
        app.config.update(config)
        overrides = {
            key: value
            for key, value in config.items()
            if settings_store.get(key) is not None
        }
        if overrides:
            settings_store.update(overrides)

    configure_logging(settings.LOG_LEVEL, settings.LOG_FILE)
    app.logger.setLevel(logging.getLogger().level)

    app.register_blueprint(sales_bp)
    app.register_blueprint(diagnostics_bp)

    @app.after_request
    def apply_security_headers(response):
        """Attach security headers to every response."""

        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Cache-Control", "no-store")
        return response

    @app.cli.command("show-config")
    def show_config_command() -> None:
        """Print the effective configuration without secrets."""
        for key, value in settings_store.as_ordered_dict().items():
            print(f"{key}={value}")

    return app
