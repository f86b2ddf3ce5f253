"""Per-character structured logs: one JSON object per line in `<log_dir>/<name>.log`."""

import json
import logging
import os
from datetime import UTC, datetime
from typing import Any

DECISION = logging.INFO + 5
logging.addLevelName(DECISION, "DECISION")

# LogRecord attributes copied into the JSON line when present
_RECORD_FIELDS = ("data", "decision", "reason", "board", "state")


class JsonLinesFormatter(logging.Formatter):
    """Format records as single-line JSON with timestamp, character and level."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "character": getattr(record, "character", ""),
            "level": record.levelname.lower(),
            "message": record.getMessage(),
        }
        for name in _RECORD_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                entry[name] = value
        if record.exc_info:
            entry["error"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class DecisionLogger(logging.LoggerAdapter):
    """Logger adapter bound to one character.

    Usage:
        log = DecisionLogger("alice", "logs")
        log.info("Gathered", data={"xp": 12})
        log.decision({"type": "rest"}, "survival override", board, summary)
    """

    def __init__(self, character: str, log_dir: str = "logs") -> None:
        base = logging.getLogger(f"artifactsfleet.characters.{character}")
        path = os.path.abspath(os.path.join(log_dir, f"{character}.log"))
        if not any(
            isinstance(h, logging.FileHandler) and h.baseFilename == path for h in base.handlers
        ):
            os.makedirs(log_dir, exist_ok=True)
            handler = logging.FileHandler(path, encoding="utf-8")
            handler.setFormatter(JsonLinesFormatter())
            base.addHandler(handler)
        base.setLevel(logging.INFO)
        super().__init__(base, {"character": character})
        self.path = path

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        extra = dict(self.extra or {})
        data = kwargs.pop("data", None)
        if data is not None:
            extra["data"] = data
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return msg, kwargs

    def decision(
        self,
        goal: dict[str, Any],
        reason: str,
        board: dict[str, Any],
        state: dict[str, Any],
    ) -> None:
        """Write the one structured decision record of a tick."""
        self.log(
            DECISION,
            "%s (%s)",
            goal.get("type"),
            reason,
            extra={"decision": goal, "reason": reason, "board": board, "state": state},
        )

    def close(self) -> None:
        for handler in list(self.logger.handlers):
            if isinstance(handler, logging.FileHandler) and handler.baseFilename == self.path:
                self.logger.removeHandler(handler)
                handler.close()
