"""Caller-supplied cancellation signal checks."""

from __future__ import annotations

import threading
from typing import Optional

from .exceptions import OperationCancelledError


def raise_if_cancelled(cancel_event: Optional[threading.Event], step: str) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise OperationCancelledError(f"Cancelled before {step}")
