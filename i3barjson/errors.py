"""
Error handling for the i3bar JSON protocol producer.

Every failure raised by the encoder and the publishers is an I3barError
carrying a structured code, a human-readable message, an optional recovery
suggestion and debugging context.
"""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(Enum):
    """
    Error codes for i3barjson.

    - 1000-1099: Configuration errors
    - 1100-1199: Serialization errors
    - 1200-1299: Output (sink) errors
    - 1300-1399: Protocol state errors
    """

    # Configuration errors (1000-1099)
    SINK_REQUIRED = 1000
    INVALID_CONFIG_VALUE = 1001

    # Serialization errors (1100-1199)
    SERIALIZATION_FAILED = 1100
    INVALID_BLOCK = 1101

    # Output errors (1200-1299)
    WRITE_FAILED = 1200
    BROKEN_PIPE = 1201
    STREAM_CORRUPTED = 1202

    # Protocol state errors (1300-1399)
    HEADER_ALREADY_SENT = 1300
    HEADER_AFTER_DATA = 1301
    PUBLISHER_CLOSED = 1302


class I3barError(Exception):
    """Base exception for i3bar protocol errors.

    Carries a code from ErrorCode plus an optional recovery suggestion and
    debugging context, flattened by to_dict() for log records.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.context = dict(context) if context else {}

    def to_dict(self) -> Dict[str, Any]:
        """Error code name and value, message, and any suggestion or context."""
        optional = {"suggestion": self.suggestion, "context": self.context}
        return {
            "error": self.code.name,
            "code": self.code.value,
            "message": self.message,
            **{key: value for key, value in optional.items() if value},
        }


class ConfigurationError(I3barError):
    """Missing sink or invalid configuration value."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INVALID_CONFIG_VALUE,
        suggestion: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            code=code,
            message=message,
            suggestion=suggestion,
            context=context
        )


class SerializationError(I3barError):
    """A value could not be represented as i3bar JSON."""

    def __init__(self, what: str, reason: str, code: ErrorCode = ErrorCode.SERIALIZATION_FAILED):
        """
        Initialize serialization error.

        Args:
            what: Kind of value being encoded (e.g., "header", "status line")
            reason: Reason for failure
            code: SERIALIZATION_FAILED or INVALID_BLOCK
        """
        super().__init__(
            code=code,
            message=f"Failed to encode {what}: {reason}",
            suggestion="Only Block instances or mappings with Block fields can be published",
            context={"what": what, "reason": reason}
        )


class WriteError(I3barError):
    """The output sink rejected a write."""

    def __init__(
        self,
        operation: str,
        reason: str,
        broken_pipe: bool = False,
        committed: bool = False,
        code: Optional[ErrorCode] = None
    ):
        """
        Initialize write error.

        Args:
            operation: Write operation that failed (e.g., "header", "element 3")
            reason: Reason for failure
            broken_pipe: True when the consumer went away
            committed: True when part of the data already reached the sink
            code: Explicit error code (defaults from broken_pipe)
        """
        context = {"operation": operation, "reason": reason}
        if committed:
            context["committed"] = True
        super().__init__(
            code=code or (ErrorCode.BROKEN_PIPE if broken_pipe else ErrorCode.WRITE_FAILED),
            message=f"Writing {operation} failed: {reason}",
            suggestion="The bar has probably exited; stop publishing" if broken_pipe else None,
            context=context
        )
        self.committed = committed


class ProtocolViolationError(I3barError):
    """An operation would break the header-then-array ordering of the stream."""

    def __init__(self, code: ErrorCode, message: str):
        super().__init__(
            code=code,
            message=message,
            suggestion="Open a new stream instead of re-using this one"
        )


class PublisherClosedError(ProtocolViolationError):
    """Submission to a publisher that was already closed."""

    def __init__(self):
        super().__init__(
            code=ErrorCode.PUBLISHER_CLOSED,
            message="Publisher is closed and no longer accepts status lines"
        )
