# log.py
#
# Key audit trail: one JSONL file per audit directory, every line carries the
# key URI it refers to.

import json
import logging
import os
import threading
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional

AUDIT_FILENAME = "key_events.jsonl"
MAX_BYTES = 5 * 1024 * 1024
BACKUP_COUNT = 10

_AUDIT_LOGGERS: Dict[str, logging.Logger] = {}
_LOCK = threading.Lock()


def get_audit_logger(base_dir: str = "logs/keys") -> logging.Logger:
    """Logger writing to <base_dir>/key_events.jsonl, created once per directory."""
    directory = os.path.abspath(base_dir)

    with _LOCK:
        logger = _AUDIT_LOGGERS.get(directory)
        if logger is not None:
            return logger

        os.makedirs(directory, exist_ok=True)
        logger = logging.getLogger(f"key_audit.{len(_AUDIT_LOGGERS)}")
        logger.setLevel(logging.INFO)
        logger.propagate = False

        handler = RotatingFileHandler(
            os.path.join(directory, AUDIT_FILENAME),
            maxBytes=MAX_BYTES,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
        _AUDIT_LOGGERS[directory] = logger
        return logger


def close_audit_loggers() -> None:
    with _LOCK:
        for logger in _AUDIT_LOGGERS.values():
            for handler in list(logger.handlers):
                logger.removeHandler(handler)
                handler.close()
        _AUDIT_LOGGERS.clear()


def log_key_event(
    key_uri: str,
    event_type: str,
    algorithm: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    base_dir: str = "logs/keys",
) -> None:
    """Append one JSON line for a key event. Never pass key material in `details`."""
    event = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "key_uri": key_uri,
        "event_type": event_type,
        "algorithm": algorithm,
        "details": details or {},
    }
    logger = get_audit_logger(base_dir)
    logger.info(json.dumps(event, ensure_ascii=False))
    for handler in logger.handlers:
        handler.flush()
