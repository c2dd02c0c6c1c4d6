"""Single-attempt file transfer with integrity verification."""

import logging
import os
import time
from pathlib import Path
from typing import Optional, Union

from .client import B2Client
from .exceptions import B2UploaderError, IntegrityMismatchError, TransmitError
from .hashing import ContentHasher
from .models import DEFAULT_CONTENT_TYPE, TransmitResult, UploadTicket

logger = logging.getLogger(__name__)


class FileTransmitter:
    """Stream one local file to a ticketed upload URL."""

    def __init__(
        self,
        client: B2Client,
        hasher: Optional[ContentHasher] = None,
        content_type: str = DEFAULT_CONTENT_TYPE,
    ):
        self.client = client
        self.hasher = hasher or ContentHasher()
        self.content_type = content_type

    def transmit(
        self,
        ticket: UploadTicket,
        file_path: Union[str, Path],
        remote_name: str,
        content_type: Optional[str] = None,
    ) -> TransmitResult:
        """Upload ``file_path`` as ``remote_name`` and verify the echoed SHA-1.

        The digest is computed before any network call. A response whose
        ``contentSha1`` differs from it fails the attempt even though the
        HTTP exchange succeeded.

        Raises:
            TransmitError: If the file cannot be read or the transfer fails.
            IntegrityMismatchError: If the echoed digest differs.
        """
        file_path = str(file_path)
        content_type = content_type or self.content_type

        try:
            local_digest = self.hasher.digest_file(file_path)
        except OSError as e:
            raise TransmitError(f"Could not read {file_path}: {e}", file_path) from e

        start_time = time.time()
        try:
            with open(file_path, "rb") as f:
                stat = os.fstat(f.fileno())
                response = self.client.upload_file(
                    ticket,
                    remote_name,
                    f,
                    content_sha1=local_digest,
                    content_length=stat.st_size,
                    content_type=content_type,
                    last_modified_millis=int(stat.st_mtime * 1000),
                )
        except OSError as e:
            raise TransmitError(f"Could not read {file_path}: {e}", file_path) from e
        except (B2UploaderError, ValueError) as e:
            raise TransmitError(f"Upload of {file_path} failed: {e}", file_path) from e

        if not self.hasher.matches(local_digest, response.content_sha1):
            raise IntegrityMismatchError(file_path, local_digest, response.content_sha1)

        elapsed = time.time() - start_time
        logger.info(f"Uploaded {file_path} as {remote_name} in {elapsed:.2f}s")
        return TransmitResult(
            remote_digest=response.content_sha1,
            size_bytes=stat.st_size,
            file_id=response.file_id,
        )
