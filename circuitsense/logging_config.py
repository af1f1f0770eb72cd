from __future__ import annotations

import logging
import logging.config
from pathlib import Path
from typing import Any, Dict

from .config import SETTINGS

_CONFIGURED = False


def configure_logging(force: bool = False) -> None:
    """Configure process-wide logging once.

    Console output always; a file handler is added when LOG_FILE is set.
    Streamlit reruns the app script on every interaction, so repeated calls
    are no-ops unless ``force`` is passed.
    """
    global _CONFIGURED
    if _CONFIGURED and not force:
        return

    log_level = SETTINGS.log_level.upper()
    handlers: Dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        }
    }
    handler_names = ["console"]

    if SETTINGS.log_file:
        log_file_path = Path(SETTINGS.log_file).expanduser()
        try:
            log_file_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logging.getLogger(__name__).warning("Failed to prepare log directory for %s: %s", log_file_path, exc)
        else:
            handlers["file"] = {
                "class": "logging.FileHandler",
                "formatter": "standard",
                "filename": str(log_file_path),
                "encoding": "utf-8",
            }
            handler_names.append("file")

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {
                    "format": "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                }
            },
            "handlers": handlers,
            "loggers": {
                "circuitsense": {
                    "handlers": handler_names,
                    "level": log_level,
                    "propagate": False,
                },
                # httpx logs every OpenAI request at INFO.
                "httpx": {"level": "WARNING"},
            },
        }
    )
    logging.getLogger(__name__).debug("Logging configured (level=%s)", log_level)
    _CONFIGURED = True
