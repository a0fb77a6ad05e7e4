from __future__ import annotations
import os


def _flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


RESTORE_CONTAINER = _flag("TCCLIENT_RESTORE_CONTAINER")
LOG_LEVEL = os.environ.get("TCCLIENT_LOG_LEVEL", "WARNING").upper()
