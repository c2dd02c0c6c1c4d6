"""Remote existence and size check for a single file."""

import logging
from typing import Optional

from .client import B2Client
from .exceptions import B2UploaderError, RemoteIndexError
from .models import ProbeResult, RemoteFileEntry, SessionContext

logger = logging.getLogger(__name__)


class RemoteIndexProbe:
    """Decide whether a file already exists remotely with the same size."""

    def __init__(
        self, client: B2Client, session_ctx: SessionContext, max_file_count: int = 100
    ):
        self.client = client
        self.session_ctx = session_ctx
        self.max_file_count = max_file_count

    def lookup(self, remote_name: str) -> Optional[RemoteFileEntry]:
        """Return the remote entry named exactly ``remote_name``, if any.

        Listings are ordered by name, so starting the listing at the name
        itself puts an exact match within the first page.
        """
        try:
            listing = self.client.list_file_names(
                self.session_ctx,
                start_file_name=remote_name,
                max_file_count=self.max_file_count,
            )
        except (B2UploaderError, ValueError) as e:
            raise RemoteIndexError(remote_name, str(e)) from e

        for entry in listing.files:
            if entry.name == remote_name:
                return entry
        return None

    def probe(self, remote_name: str, local_size_bytes: int) -> ProbeResult:
        """Compare the remote entry for ``remote_name`` with the local size."""
        entry = self.lookup(remote_name)
        if entry is None:
            return ProbeResult.ABSENT

        if entry.size_bytes == local_size_bytes:
            return ProbeResult.MATCHING_SIZE

        logger.info(
            f"{remote_name} exists with size {entry.size_bytes}, "
            f"local size is {local_size_bytes}; uploading again"
        )
        return ProbeResult.MISMATCHED_SIZE
