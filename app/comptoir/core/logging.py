from __future__ import annotations

import json
import logging

from app.comptoir.core.config import settings


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format="%(message)s")
    logging.getLogger("comptoir").setLevel(level)


def log_json(logger: logging.Logger, payload: dict) -> None:
    payload.setdefault("app", settings.APP_NAME)
    logger.info(json.dumps(payload, ensure_ascii=False, default=str))
