"""Unit tests for structured protocol errors."""

from i3barjson.errors import (
    ConfigurationError,
    ErrorCode,
    I3barError,
    ProtocolViolationError,
    PublisherClosedError,
    SerializationError,
    WriteError,
)


def test_to_dict_includes_context():
    error = WriteError("element 2", "Broken pipe", broken_pipe=True)
    assert error.to_dict() == {
        "error": "BROKEN_PIPE",
        "code": ErrorCode.BROKEN_PIPE.value,
        "message": "Writing element 2 failed: Broken pipe",
        "suggestion": "The bar has probably exited; stop publishing",
        "context": {"operation": "element 2", "reason": "Broken pipe"},
    }


def test_to_dict_omits_empty_fields():
    error = ConfigurationError("Output sink required", code=ErrorCode.SINK_REQUIRED)
    assert error.to_dict() == {"error": "SINK_REQUIRED", "code": 1000, "message": "Output sink required"}


def test_hierarchy():
    assert issubclass(PublisherClosedError, ProtocolViolationError)
    for cls in (ConfigurationError, SerializationError, WriteError, ProtocolViolationError):
        assert issubclass(cls, I3barError)


def test_str_is_message():
    error = SerializationError("header", "bad value")
    assert str(error) == "Failed to encode header: bad value"
    assert error.code == ErrorCode.SERIALIZATION_FAILED


def test_write_error_committed_flag():
    error = WriteError("element 1", "flush failed", committed=True)
    assert error.committed
    assert error.code == ErrorCode.WRITE_FAILED
    assert error.to_dict()["context"] == {"operation": "element 1", "reason": "flush failed", "committed": True}


def test_write_error_explicit_code():
    error = WriteError("element 4", "stream holds a partially written element", code=ErrorCode.STREAM_CORRUPTED)
    assert error.code == ErrorCode.STREAM_CORRUPTED
    assert not error.committed
