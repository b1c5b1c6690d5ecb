"""
Structured log sink for the sweeper.

Every message becomes a LogEvent (UTC timestamp, severity, text). Events are
written to a standard logging.Logger and, when given, to an external sink
callable so callers can render or collect them however they like.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

_LEVELS = {
    "info": logging.INFO,
    "success": SUCCESS,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


@dataclass(frozen=True)
class LogEvent:
    timestamp: datetime
    severity: str
    message: str


class SweepLog:
    def __init__(self, logger: Optional[logging.Logger] = None,
                 sink: Optional[Callable[[LogEvent], None]] = None):
        self.logger = logger or logging.getLogger("Sweeper")
        self.sink = sink

    def emit(self, severity: str, message: str) -> LogEvent:
        if severity not in _LEVELS:
            raise ValueError(f"Unknown severity: {severity}")
        event = LogEvent(datetime.now(timezone.utc), severity, message)
        self.logger.log(_LEVELS[severity], message)
        if self.sink is not None:
            self.sink(event)
        return event

    def info(self, message: str) -> LogEvent:
        return self.emit("info", message)

    def success(self, message: str) -> LogEvent:
        return self.emit("success", message)

    def warning(self, message: str) -> LogEvent:
        return self.emit("warning", message)

    def error(self, message: str) -> LogEvent:
        return self.emit("error", message)
