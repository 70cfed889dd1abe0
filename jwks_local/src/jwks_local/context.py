"""Per-operation context passed explicitly into store and service calls."""
from __future__ import annotations

import threading
from dataclasses import dataclass, field

from .config import AppConfig, DEFAULT_CONFIG
from .exceptions import OperationCancelledError


@dataclass(slots=True)
class OperationContext:
    """Configuration plus a cooperative cancellation flag.

    Batch operations call :meth:`check_cancelled` between keys. A single file
    read or write is never interrupted part way.
    """

    config: AppConfig = field(default_factory=lambda: DEFAULT_CONFIG.model_copy(deep=True))
    cancel_event: threading.Event = field(default_factory=threading.Event)

    def cancel(self) -> None:
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def check_cancelled(self) -> None:
        if self.cancelled:
            raise OperationCancelledError("Operation cancelled")


__all__ = ["OperationContext"]
