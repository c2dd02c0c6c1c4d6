"""Content digests used to tag and verify uploads."""

import hashlib
import logging
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)


class ContentHasher:
    """Compute hex SHA-1 digests of local files.

    B2 verifies the ``X-Bz-Content-Sha1`` header against the received body and
    echoes the digest back as ``contentSha1``.
    """

    def __init__(self, algorithm: str = "sha1", chunk_size: int = 1024 * 1024):
        self.algorithm = algorithm
        self.chunk_size = chunk_size

    def digest_file(self, file_path: Union[str, Path]) -> str:
        """Return the lowercase hex digest of a file's bytes."""
        digest = hashlib.new(self.algorithm)
        with open(file_path, "rb") as f:
            # Read in chunks to handle large files efficiently
            for chunk in iter(lambda: f.read(self.chunk_size), b""):
                digest.update(chunk)

        result = digest.hexdigest()
        logger.debug(f"{self.algorithm} of {file_path}: {result}")
        return result

    @staticmethod
    def matches(local_digest: str, remote_digest: str) -> bool:
        """Compare two hex digests ignoring case."""
        return local_digest.lower() == (remote_digest or "").lower()
