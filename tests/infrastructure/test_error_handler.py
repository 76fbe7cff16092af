import logging
from unittest.mock import Mock

from photoshelf.errors import (
    ApplicationError,
    ConnectionPoolExhausted,
    DomainError,
    ExternalToolError,
    InfrastructureError,
    InvalidVisualItemError,
    PhotoshelfError,
    PreviewError,
    PreviewErrorKind,
    ScanError,
    ScanErrorKind,
    StorageError,
)
from photoshelf.errors.handler import ErrorHandler, ErrorOccurredEvent, ErrorSeverity
from photoshelf.events.bus import EventBus


def test_hierarchy_layers():
    assert issubclass(DomainError, PhotoshelfError)
    assert issubclass(InfrastructureError, PhotoshelfError)
    assert issubclass(ApplicationError, PhotoshelfError)
    assert issubclass(StorageError, InfrastructureError)
    assert issubclass(ConnectionPoolExhausted, StorageError)
    assert issubclass(ExternalToolError, InfrastructureError)
    assert issubclass(InvalidVisualItemError, DomainError)
    assert issubclass(ScanError, ApplicationError)
    assert issubclass(PreviewError, ApplicationError)


def test_scan_and_preview_errors_carry_kind(tmp_path):
    scan_error = ScanError(ScanErrorKind.IO_ERROR, tmp_path / "x.jpg")
    assert scan_error.kind is ScanErrorKind.IO_ERROR
    assert scan_error.path == tmp_path / "x.jpg"
    assert "io_error" in str(scan_error)

    preview_error = PreviewError(PreviewErrorKind.DECODE_FAILED, message="bad frame")
    assert preview_error.kind is PreviewErrorKind.DECODE_FAILED
    assert str(preview_error) == "bad frame"


def test_handle_error_logs_and_publishes():
    logger = Mock(spec=logging.Logger)
    event_bus = Mock(spec=EventBus)
    handler = ErrorHandler(logger, event_bus)

    error = ValueError("test error")
    handler.handle(error, ErrorSeverity.ERROR, {"media_id": 3})

    logger.error.assert_called_once()
    assert "media_id=3" in logger.error.call_args[0]

    event = event_bus.publish.call_args[0][0]
    assert isinstance(event, ErrorOccurredEvent)
    assert event.error is error
    assert event.severity == ErrorSeverity.ERROR
    assert event.context == {"media_id": 3}


def test_warning_severity_uses_warning_level():
    logger = Mock(spec=logging.Logger)
    handler = ErrorHandler(logger, Mock(spec=EventBus))

    handler.handle(RuntimeError("soft"), ErrorSeverity.WARNING)

    logger.warning.assert_called_once()
    logger.error.assert_not_called()


def test_ui_callback_only_for_errors_and_worse():
    logger = Mock(spec=logging.Logger)
    handler = ErrorHandler(logger, Mock(spec=EventBus))
    callback = Mock()
    handler.register_ui_callback(callback)

    handler.handle(Exception("info"), ErrorSeverity.INFO)
    callback.assert_not_called()

    handler.handle(RuntimeError("ui error"), ErrorSeverity.CRITICAL)
    callback.assert_called_with("ui error", ErrorSeverity.CRITICAL)
