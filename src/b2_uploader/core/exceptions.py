"""
Exception classes for the B2 uploader.

Run-level failures (authentication, bucket resolution) abort the whole run.
Everything else is scoped to a single file and contained by the orchestrator.
"""

from typing import Any, Dict, Optional


class B2UploaderError(Exception):
    """Base exception for all B2 uploader errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class AuthenticationError(B2UploaderError):
    """Raised when the account credentials are rejected."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message)


class BucketNotFoundError(B2UploaderError):
    """Raised when no usable bucket can be resolved for the account."""

    def __init__(self, bucket_name: Optional[str] = None) -> None:
        if bucket_name:
            message = f"Bucket not found: {bucket_name}"
        else:
            message = "No buckets available for this account"
        super().__init__(message, {"bucket_name": bucket_name} if bucket_name else None)
        self.bucket_name = bucket_name


class NetworkError(B2UploaderError):
    """Raised for transport failures and non-2xx API responses."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
    ) -> None:
        details: Dict[str, Any] = {}
        if status_code:
            details["status_code"] = status_code
        if code:
            details["code"] = code
        super().__init__(message, details)
        self.status_code = status_code
        self.code = code


class RemoteIndexError(B2UploaderError):
    """Raised when the remote listing cannot be queried for a file."""

    def __init__(self, remote_name: str, reason: str) -> None:
        super().__init__(
            f"Could not check remote state of {remote_name}: {reason}",
            {"remote_name": remote_name},
        )
        self.remote_name = remote_name


class TicketError(B2UploaderError):
    """Raised when an upload URL cannot be obtained."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Could not obtain upload URL: {reason}")


class TransmitError(B2UploaderError):
    """Raised when a file transfer fails."""

    def __init__(self, message: str, file_path: Optional[str] = None) -> None:
        details = {"file_path": file_path} if file_path else {}
        super().__init__(message, details)
        self.file_path = file_path


class IntegrityMismatchError(TransmitError):
    """Raised when the server's echoed SHA-1 differs from the local one."""

    def __init__(self, file_path: str, local_digest: str, remote_digest: str) -> None:
        super().__init__(
            f"SHA-1 mismatch for {file_path}: local {local_digest}, remote {remote_digest}",
            file_path,
        )
        self.local_digest = local_digest
        self.remote_digest = remote_digest


class RetriesExhaustedError(B2UploaderError):
    """Raised when every upload attempt for a file has failed."""

    def __init__(self, file_path: str, attempts: int, last_error: Optional[str]) -> None:
        super().__init__(
            f"Upload of {file_path} failed after {attempts} attempts: {last_error}",
            {"file_path": file_path, "attempts": attempts},
        )
        self.file_path = file_path
        self.attempts = attempts
        self.last_error = last_error


class ValidationError(B2UploaderError):
    """Raised for input validation errors."""

    def __init__(self, field: str, value: Any, message: str) -> None:
        details = {"field": field, "value": value}
        super().__init__(f"Validation error for {field}: {message}", details)
        self.field = field
        self.value = value


class ConfigurationError(B2UploaderError):
    """Raised for configuration-related errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
