"""Structured JSON-lines logging with a minimum severity level."""

from __future__ import annotations

import json
import sys
import threading
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Mapping, Optional, TextIO

Fields = Mapping[str, Any]


class LogLevel(IntEnum):
    """Severity threshold; messages below the logger's level are dropped."""

    DEBUG = 0
    INFO = 1
    ERROR = 2

    def __str__(self) -> str:
        return self.name.lower()


def parse_log_level(s: str) -> LogLevel:
    """Parse a level name case-insensitively, falling back to INFO."""
    return LogLevel.__members__.get(s.strip().upper(), LogLevel.INFO)


class Logger:
    """Writes one JSON object per line, merging static and per-call fields."""

    def __init__(
        self,
        fields: Optional[Fields] = None,
        out: Optional[TextIO] = None,
        level: LogLevel = LogLevel.INFO,
    ) -> None:
        self.fields: dict[str, Any] = dict(fields or {})
        self.out: TextIO = out if out is not None else sys.stdout
        self.level = level
        self._lock = threading.Lock()

    def _log(self, label: str, level: LogLevel, msg: str, fields: Optional[Fields]) -> None:
        if level < self.level:
            return

        entry: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "level": label,
            "msg": msg,
        }
        entry.update(self.fields)
        if fields:
            entry.update(fields)

        line = json.dumps(entry, sort_keys=True, default=str)
        with self._lock:
            self.out.write(line + "\n")

    def info(self, msg: str, fields: Optional[Fields] = None) -> None:
        self._log("INFO", LogLevel.INFO, msg, fields)

    def error(self, msg: str, fields: Optional[Fields] = None) -> None:
        self._log("ERROR", LogLevel.ERROR, msg, fields)

    def debug(self, msg: str, fields: Optional[Fields] = None) -> None:
        self._log("DEBUG", LogLevel.DEBUG, msg, fields)