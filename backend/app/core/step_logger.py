"""
Step-by-step operational logging for payment flows.

WHAT: Emits one log line per milestone of a flow, for example
`[CREATE-INVOICE-PAYMENT] Invoices found - {"count": 2}`.

WHY: Payment support requests are answered by reading the log of a single
checkout attempt. A fixed prefix per flow makes those lines greppable, and
the same details are attached as structured `extra` for log aggregators.

Never pass tokens or emails as details.
"""

import json
import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from app.core.exceptions import AppException


class StepLogger:
    """Logger bound to one flow prefix."""

    def __init__(self, prefix: str, logger: Optional[logging.Logger] = None):
        self.prefix = prefix
        self._logger = logger or logging.getLogger(__name__)

    def _format(self, step: str, details: dict) -> str:
        suffix = f" - {json.dumps(details, default=str, ensure_ascii=False)}" if details else ""
        return f"[{self.prefix}] {step}{suffix}"

    def step(self, step: str, **details: Any) -> None:
        self._logger.info(
            self._format(step, details),
            extra={"flow": self.prefix, "step": step, "details": details},
        )

    def error(self, message: str, **details: Any) -> None:
        details = {"message": message, **details}
        self._logger.error(
            self._format("ERROR", details),
            extra={"flow": self.prefix, "step": "ERROR", "details": details},
        )

    @contextmanager
    def failures(self) -> Iterator["StepLogger"]:
        """Log an application error raised inside the block, then re-raise it."""
        try:
            yield self
        except AppException as e:
            self.error(e.message, error_type=e.__class__.__name__)
            raise
