"""Unit tests for ServiceError hierarchy and storage exception mapping."""

import pytest
from minio.error import S3Error, ServerError
from urllib3.exceptions import ProtocolError

from bucket_core.runtime.errors import (
    ErrorCode,
    RetryableError,
    ServiceError,
    StorageUnavailableError,
    TerminalError,
    classify_storage_exception,
)


def s3_error(code: str, message: str = "backend says no") -> S3Error:
    return S3Error(
        code=code,
        message=message,
        resource="/uploads/a.png",
        request_id="req-1",
        host_id="host-1",
        response=None,
    )


class TestServiceError:
    """Tests for ServiceError base class."""

    def test_str_carries_code(self):
        error = ServiceError(code=ErrorCode.NOT_FOUND, message_safe="gone")

        assert str(error) == "[NOT_FOUND] gone"
        assert len(error.debug_id) == 8

    def test_subclasses_set_retryable(self):
        assert RetryableError("X", "x").retryable is True
        assert TerminalError("X", "x").retryable is False

    def test_storage_unavailable_is_configuration_error(self):
        error = StorageUnavailableError("missing credentials")

        assert isinstance(error, TerminalError)
        assert error.code == ErrorCode.CONFIGURATION_ERROR
        assert "missing credentials" in error.message_safe


class TestClassifyStorageException:
    """Tests for mapping backend exceptions."""

    @pytest.mark.parametrize(
        "code,expected",
        [
            ("NoSuchKey", ErrorCode.NOT_FOUND),
            ("NoSuchBucket", ErrorCode.NOT_FOUND),
            ("AccessDenied", ErrorCode.FORBIDDEN),
            ("InvalidAccessKeyId", ErrorCode.UNAUTHORIZED),
            ("SignatureDoesNotMatch", ErrorCode.UNAUTHORIZED),
        ],
    )
    def test_s3_codes(self, code, expected):
        error = classify_storage_exception(s3_error(code), "get")

        assert error.code == expected
        assert error.retryable is False

    def test_backend_message_is_kept_verbatim(self):
        error = classify_storage_exception(s3_error("NoSuchKey", "The specified key does not exist."), "get")

        assert error.message_safe == "The specified key does not exist."
        assert isinstance(error.cause, S3Error)
        # Request ids and the S3 code stay available for the debug log
        assert "req-1" in error.message_debug
        assert "NoSuchKey" in error.message_debug

    def test_throttling_is_retryable(self):
        error = classify_storage_exception(s3_error("SlowDown"), "put")

        assert error.code == ErrorCode.RATE_LIMITED
        assert error.retryable is True

    def test_unknown_s3_code_falls_back_by_operation(self):
        assert classify_storage_exception(s3_error("Weird"), "put").code == ErrorCode.STORAGE_WRITE_ERROR
        assert classify_storage_exception(s3_error("Weird"), "delete").code == ErrorCode.STORAGE_WRITE_ERROR
        assert classify_storage_exception(s3_error("Weird"), "get").code == ErrorCode.STORAGE_READ_ERROR

    def test_server_error_is_retryable(self):
        error = classify_storage_exception(ServerError("bad gateway", 502), "get")

        assert error.code == ErrorCode.SERVICE_UNAVAILABLE
        assert error.retryable is True

    def test_transport_error_is_retryable(self):
        error = classify_storage_exception(ProtocolError("Connection aborted."), "put")

        assert error.code == ErrorCode.CONNECTION_ERROR
        assert error.retryable is True

    def test_missing_staged_file_is_invalid_input(self):
        exc = FileNotFoundError(2, "No such file or directory", "/tmp/missing.bin")

        error = classify_storage_exception(exc, "put")

        assert error.code == ErrorCode.INVALID_INPUT
        assert "/tmp/missing.bin" in error.message_safe

    def test_value_and_type_errors_are_invalid_input(self):
        assert classify_storage_exception(ValueError("bad"), "put").code == ErrorCode.INVALID_INPUT
        assert classify_storage_exception(TypeError("bad"), "put").code == ErrorCode.INVALID_INPUT

    def test_service_error_passes_through(self):
        original = StorageUnavailableError("nope")

        assert classify_storage_exception(original, "put") is original

    def test_anything_else_is_internal(self):
        error = classify_storage_exception(RuntimeError("boom"), "get")

        assert error.code == ErrorCode.INTERNAL_ERROR
        assert error.message_safe == "boom"
