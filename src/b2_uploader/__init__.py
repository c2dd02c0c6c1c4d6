"""
B2 Uploader - Bulk upload of a local directory tree to Backblaze B2.

This package provides:
- CLI tool for mirroring a directory into a bucket
- Python SDK for programmatic uploads
- Size-based skipping of files already present remotely
- Bounded retries and SHA-1 verification of every upload
"""

__version__ = "1.0.0"
__author__ = "B2 Uploader Team"

from .core.api import B2UploaderAPI, upload_directory
from .core.client import B2Client
from .core.exceptions import (
    AuthenticationError,
    B2UploaderError,
    BucketNotFoundError,
    IntegrityMismatchError,
    NetworkError,
    RemoteIndexError,
    RetriesExhaustedError,
    TicketError,
    TransmitError,
)
from .core.files import enumerate_files, normalize_remote_name
from .core.models import (
    RunSummary,
    SessionContext,
    UploaderConfig,
    UploadOutcome,
    UploadStatus,
)
from .core.orchestrator import UploadOrchestrator

__all__ = [
    # Core classes
    "B2UploaderAPI",
    "B2Client",
    "UploadOrchestrator",
    # Models
    "UploaderConfig",
    "SessionContext",
    "UploadOutcome",
    "UploadStatus",
    "RunSummary",
    # Exceptions
    "B2UploaderError",
    "AuthenticationError",
    "BucketNotFoundError",
    "NetworkError",
    "RemoteIndexError",
    "TicketError",
    "TransmitError",
    "IntegrityMismatchError",
    "RetriesExhaustedError",
    # Convenience functions
    "upload_directory",
    "enumerate_files",
    "normalize_remote_name",
    # Metadata
    "__version__",
    "__author__",
]
