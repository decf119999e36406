"""mimemail logging helpers with deterministic JSON emission and redaction.

What:
  Offer a tiny facade over Python streams so every mimemail component can emit
  JSON log lines with consistent fields and automatic removal of message
  content.

Why:
  Email payloads routinely carry personal data and large binary blobs. Logging
  a structured event name plus metadata (sizes, counts, field names) keeps the
  diagnostics useful without ever leaking a body or attachment into the logs.

How:
  Provide a :class:`JsonLogger` dataclass that accepts a target stream and
  enforces uppercase severity levels. ``extra`` dictionaries are scrubbed via a
  recursive redaction helper before being serialised with ``json.dump``.

Interfaces:
  :class:`JsonLogger`, :func:`get_logger`.

Invariants & Safety:
  - Every entry includes an ISO8601 timestamp, severity, event message and
    component name.
  - Sensitive keys (``body``, ``data``, ``payload``, ``html``, ``text``,
    ``password``) are replaced with ``[redacted]`` even inside nested
    dictionaries.
  - Streams are flushed after every write.
"""
from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


REDACTED = "[redacted]"
SENSITIVE_KEYS = frozenset({"body", "data", "payload", "html", "text", "password"})


@dataclass
class JsonLogger:
    """Structured JSON logger with automatic redaction.

    What:
      Emits single-line JSON log entries that include timestamps, severity, a
      component tag, and optional supplemental fields.

    Why:
      Centralising structured logging avoids duplicating the redaction logic
      and gives tests a predictable schema to assert on.

    How:
      Stores the destination stream and component label, then exposes
      :meth:`log`, :meth:`debug`, :meth:`info`, :meth:`warning` and
      :meth:`error` which merge a canonical payload with redacted extras.
      ``stream`` defaults to ``None`` meaning "whatever ``sys.stderr`` is at
      write time" so pytest's capture fixtures see the output.
    """

    stream: Any = None
    component: str = "mimemail"
    min_level: str = "INFO"
    _levels: Dict[str, int] = field(
        default_factory=lambda: {"DEBUG": 10, "INFO": 20, "WARN": 30, "ERROR": 40},
        repr=False,
    )

    def log(self, level: str, message: str, *, extra: Optional[Dict[str, Any]] = None) -> None:
        """Emit a structured JSON log entry.

        Args:
          level: Human-readable severity (e.g., ``"info"`` or ``"error"``).
          message: Event name, snake_case by convention.
          extra: Optional context dictionary that will be redacted recursively.
        """

        level = level.upper()
        if self._levels.get(level, 0) < self._levels.get(self.min_level.upper(), 0):
            return
        payload = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "lvl": level,
            "msg": message,
            "component": self.component,
        }
        if extra:
            payload.update(self._redact(extra))
        stream = self.stream if self.stream is not None else sys.stderr
        json.dump(payload, stream, separators=(",", ":"), default=str)
        stream.write("\n")
        stream.flush()

    def debug(self, message: str, **kwargs: Any) -> None:
        self.log("DEBUG", message, extra=kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        """Log an informational event with structured context."""

        self.log("INFO", message, extra=kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log a warning event.

        What:
          Emits a ``WARN`` level entry using the structured payload pipeline.

        Why:
          Non-fatal conditions (unknown serialized fields, a failed HTML to
          text conversion) must stay visible without interrupting the caller.
        """

        self.log("WARN", message, extra=kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        """Log an error event suitable for alerting."""

        self.log("ERROR", message, extra=kwargs)

    @staticmethod
    def _redact(data: Dict[str, Any]) -> Dict[str, Any]:
        """Return a copy of ``data`` with sensitive keys masked recursively."""

        result: Dict[str, Any] = {}
        for key, value in data.items():
            if key in SENSITIVE_KEYS:
                result[key] = REDACTED
            elif isinstance(value, dict):
                result[key] = JsonLogger._redact(value)
            else:
                result[key] = value
        return result


def get_logger(component: str) -> JsonLogger:
    """Construct a :class:`JsonLogger` for the requested component.

    What:
      Returns a ready-to-use :class:`JsonLogger` bound to ``component``.

    Why:
      Call sites should avoid instantiating :class:`JsonLogger` directly so the
      shared defaults (redaction keys, stream) can evolve centrally.

    Args:
      component: Logical subsystem name to include in log payloads.

    Returns:
      Configured :class:`JsonLogger` instance writing to ``stderr``.
    """

    return JsonLogger(component=component)
