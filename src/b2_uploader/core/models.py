"""
Pydantic models for the B2 uploader.

Covers the B2 native API payloads consumed by the client, the per-run values
shared between workers, and the per-file outcomes handed back to the caller.
"""

import os
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, validator

DEFAULT_AUTH_URL = "https://api.backblaze.com/b2api/v1/b2_authorize_account"
DEFAULT_CONTENT_TYPE = "b2/x-auto"
MIN_CONCURRENCY = 2


class UploadStatus(str, Enum):
    """Terminal status of a single file."""

    SKIPPED = "skipped"
    UPLOADED = "uploaded"
    FAILED = "failed"


class ProbeResult(str, Enum):
    """Answer of the remote existence/size check."""

    ABSENT = "absent"
    MATCHING_SIZE = "matching_size"
    MISMATCHED_SIZE = "mismatched_size"


class TaskState(str, Enum):
    """States of the per-file retry state machine."""

    PENDING = "pending"
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


# B2 API payloads
class AuthorizeAccountResponse(BaseModel):
    """Response of b2_authorize_account."""

    account_id: str = Field(..., alias="accountId")
    api_url: str = Field(..., alias="apiUrl")
    authorization_token: str = Field(..., alias="authorizationToken")
    download_url: Optional[str] = Field(None, alias="downloadUrl")

    class Config:
        """Pydantic config."""

        populate_by_name = True


class Bucket(BaseModel):
    """Bucket entry of b2_list_buckets."""

    bucket_id: str = Field(..., alias="bucketId")
    bucket_name: str = Field(..., alias="bucketName")
    bucket_type: Optional[str] = Field(None, alias="bucketType")

    class Config:
        """Pydantic config."""

        populate_by_name = True


class ListBucketsResponse(BaseModel):
    """Response of b2_list_buckets."""

    buckets: List[Bucket] = Field(default_factory=list)


class RemoteFileEntry(BaseModel):
    """A file name and size as reported by the remote listing."""

    name: str = Field(..., alias="fileName", description="Remote file name")
    size_bytes: int = Field(..., alias="size", ge=0, description="Size in bytes")

    class Config:
        """Pydantic config."""

        frozen = True
        populate_by_name = True


class ListFileNamesResponse(BaseModel):
    """Response of b2_list_file_names."""

    files: List[RemoteFileEntry] = Field(default_factory=list)
    next_file_name: Optional[str] = Field(None, alias="nextFileName")

    class Config:
        """Pydantic config."""

        populate_by_name = True


class GetUploadUrlResponse(BaseModel):
    """Response of b2_get_upload_url."""

    bucket_id: Optional[str] = Field(None, alias="bucketId")
    upload_url: str = Field(..., alias="uploadUrl")
    authorization_token: str = Field(..., alias="authorizationToken")

    class Config:
        """Pydantic config."""

        populate_by_name = True


class UploadFileResponse(BaseModel):
    """Response of an upload transfer."""

    file_id: Optional[str] = Field(None, alias="fileId")
    file_name: Optional[str] = Field(None, alias="fileName")
    content_sha1: str = Field(..., alias="contentSha1")
    content_length: Optional[int] = Field(None, alias="contentLength")
    content_type: Optional[str] = Field(None, alias="contentType")

    class Config:
        """Pydantic config."""

        populate_by_name = True


# Run values
class SessionContext(BaseModel):
    """Authorized API location and target bucket for one run."""

    api_url: str = Field(..., description="Base URL for API calls")
    auth_token: str = Field(..., description="Account authorization token")
    bucket_id: str = Field(..., description="Target bucket identifier")
    account_id: Optional[str] = Field(None, description="Authorized account")
    bucket_name: Optional[str] = Field(None, description="Target bucket name")

    class Config:
        """Pydantic config."""

        frozen = True


class UploadTicket(BaseModel):
    """Upload URL and token valid for exactly one transfer attempt."""

    endpoint_url: str
    ticket_token: str

    class Config:
        """Pydantic config."""

        frozen = True

    @classmethod
    def from_response(cls, response: GetUploadUrlResponse) -> "UploadTicket":
        return cls(
            endpoint_url=response.upload_url,
            ticket_token=response.authorization_token,
        )


class TransmitResult(BaseModel):
    """Verified result of one successful transfer."""

    remote_digest: str
    size_bytes: int
    file_id: Optional[str] = None


class UploadOutcome(BaseModel):
    """Terminal result for one input file."""

    path: str = Field(..., description="Local file path")
    remote_name: str = Field(..., description="Normalized remote file name")
    status: UploadStatus
    attempts: int = Field(0, ge=0, description="Upload attempts made")
    last_error: Optional[str] = Field(None, description="Last error seen")
    error_kind: Optional[str] = Field(
        None, description="Error class that failed the file, or 'cancelled'"
    )
    remote_digest: Optional[str] = Field(None, description="SHA-1 echoed by B2")
    size_bytes: Optional[int] = Field(None, description="Local file size")

    class Config:
        """Pydantic config."""

        frozen = True


class RunSummary(BaseModel):
    """Aggregated outcomes of one orchestrator run."""

    outcomes: List[UploadOutcome] = Field(default_factory=list)
    elapsed_seconds: float = 0.0
    bucket_name: Optional[str] = None

    def _count(self, status: UploadStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def uploaded(self) -> int:
        return self._count(UploadStatus.UPLOADED)

    @property
    def skipped(self) -> int:
        return self._count(UploadStatus.SKIPPED)

    @property
    def failed(self) -> int:
        return self._count(UploadStatus.FAILED)

    @property
    def failed_outcomes(self) -> List[UploadOutcome]:
        return [o for o in self.outcomes if o.status == UploadStatus.FAILED]

    @property
    def ok(self) -> bool:
        return self.failed == 0


# Configuration Models
class RetryPolicy(BaseModel):
    """Attempt budget and backoff between attempts of one file."""

    max_attempts: int = Field(3, ge=1, description="Attempts per file")
    delay_seconds: float = Field(30.0, ge=0, description="Backoff between attempts")
    exponential: bool = Field(False, description="Double the delay per attempt")
    max_delay_seconds: float = Field(300.0, ge=0, description="Cap for exponential backoff")

    def delay_for(self, attempt: int) -> float:
        """Return the sleep before the attempt following ``attempt``."""
        if not self.exponential:
            return self.delay_seconds
        return min(self.delay_seconds * (2 ** (attempt - 1)), self.max_delay_seconds)


class UploaderConfig(BaseModel):
    """B2 uploader configuration model."""

    account_id: Optional[str] = Field(None, description="B2 account or key ID")
    application_key: Optional[str] = Field(None, description="B2 application key")
    auth_url: str = Field(DEFAULT_AUTH_URL, description="b2_authorize_account URL")
    bucket_name: Optional[str] = Field(
        None, description="Target bucket (defaults to the first listed bucket)"
    )
    timeout: int = Field(30, ge=1, le=300, description="API request timeout in seconds")
    upload_timeout: int = Field(
        600, ge=1, description="Upload transfer timeout in seconds"
    )
    concurrency: int = Field(MIN_CONCURRENCY, description="Parallel upload workers")
    max_attempts: int = Field(3, ge=1, description="Upload attempts per file")
    retry_delay: float = Field(30.0, ge=0, description="Seconds between attempts")
    exponential_backoff: bool = Field(False, description="Double the retry delay")
    max_retry_delay: float = Field(300.0, ge=0, description="Exponential backoff cap")
    content_type: str = Field(DEFAULT_CONTENT_TYPE, min_length=1)
    recursive: bool = Field(False, description="Include sub directories")
    exclude_patterns: List[str] = Field(default_factory=list)

    @validator("concurrency")
    def enforce_min_concurrency(cls, v: int) -> int:
        """Concurrency below the minimum is raised to it."""
        return max(v, MIN_CONCURRENCY)

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.max_attempts,
            delay_seconds=self.retry_delay,
            exponential=self.exponential_backoff,
            max_delay_seconds=self.max_retry_delay,
        )

    @classmethod
    def from_env(cls, **overrides: Any) -> "UploaderConfig":
        """Build a config from B2_* environment variables plus overrides."""
        values: Dict[str, Any] = {}
        env_map = {
            "account_id": "B2_ACCOUNT_ID",
            "application_key": "B2_APPLICATION_KEY",
            "bucket_name": "B2_BUCKET_NAME",
            "concurrency": "B2_UPLOAD_THREADS",
        }
        for field_name, env_var in env_map.items():
            value = os.getenv(env_var)
            if value:
                values[field_name] = value
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
