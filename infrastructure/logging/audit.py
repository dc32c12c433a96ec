"""Append-only audit trail for schedule-changing actions.

Every record is one JSON object per line::

    2026-03-01T10:00:00Z | INFO | {"actor": "42", "action": "water_event.resolve",
                                   "resource": "water_event:<id>", "outcome": "success",
                                   "meta": {"status": "WATERED"}}
"""
import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict


class WindowsSafeRotatingFileHandler(RotatingFileHandler):
    """RotatingFileHandler that tolerates locked files during rollover on Windows."""

    def doRollover(self):
        if self.stream:
            self.stream.close()
            self.stream = None
        try:
            super().doRollover()
        except PermissionError:
            # File still locked by another process; keep appending to it.
            pass
        finally:
            if not self.stream:
                self.stream = self._open()


def _build_handler(log_path: Path) -> RotatingFileHandler:
    handler_cls = WindowsSafeRotatingFileHandler if sys.platform == "win32" else RotatingFileHandler
    handler = handler_cls(
        filename=str(log_path),
        maxBytes=10 * 1024 * 1024,  # 10 MB
        backupCount=30,
        encoding="utf-8",
        delay=True,
    )
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)sZ | %(levelname)s | %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )
    return handler


class AuditLogger:
    """Structured audit logger that writes append-only records."""

    def __init__(self, log_path: str, level: str = "INFO", *, name: str = "plantcare.audit") -> None:
        self.log_path = Path(log_path)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        self.logger.propagate = False

        target = str(self.log_path.resolve())
        if not any(
            isinstance(h, RotatingFileHandler) and getattr(h, "baseFilename", None) == target
            for h in self.logger.handlers
        ):
            self.logger.addHandler(_build_handler(self.log_path))

    def log_event(self, actor: str, action: str, resource: str, outcome: str, **metadata: Any) -> None:
        payload: Dict[str, Any] = {
            "actor": actor,
            "action": action,
            "resource": resource,
            "outcome": outcome,
        }
        if metadata:
            payload["meta"] = metadata

        self.logger.info(json.dumps(payload, default=str))

    def close(self) -> None:
        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)
