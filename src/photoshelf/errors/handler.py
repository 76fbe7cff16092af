import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from photoshelf.events.bus import Event, EventBus


class ErrorSeverity(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass(kw_only=True)
class ErrorOccurredEvent(Event):
    error: Exception
    severity: ErrorSeverity
    context: dict = field(default_factory=dict)


class ErrorHandler:
    """Single place where recoverable pipeline failures are reported.

    The handler logs at the level matching the severity, republishes the
    failure on the event bus and, for errors and worse, forwards a message to
    an optional UI callback.
    """

    def __init__(self, logger: logging.Logger, event_bus: EventBus):
        self._logger = logger
        self._events = event_bus
        self._ui_callback: Optional[Callable[[str, ErrorSeverity], None]] = None

    def register_ui_callback(self, callback: Callable[[str, ErrorSeverity], None]):
        self._ui_callback = callback

    def handle(
        self,
        error: Exception,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: Optional[dict] = None,
    ):
        context = context or {}
        log_method = getattr(self._logger, severity.value, self._logger.error)
        details = " ".join(f"{key}={value}" for key, value in sorted(context.items()))
        if details:
            log_method("%s: %s (%s)", error.__class__.__name__, error, details)
        else:
            log_method("%s: %s", error.__class__.__name__, error)

        self._events.publish(ErrorOccurredEvent(
            error=error,
            severity=severity,
            context=context,
        ))

        if self._ui_callback and severity in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL):
            self._ui_callback(str(error), severity)
