"""Programmatic API for bulk uploads to B2."""

import logging
import threading
import time
from pathlib import Path
from typing import Callable, List, Optional, Union

from .client import B2Client
from .exceptions import BucketNotFoundError, ConfigurationError
from .files import enumerate_files
from .models import Bucket, RunSummary, SessionContext, UploaderConfig
from .orchestrator import ProgressCallback, UploadOrchestrator


logger = logging.getLogger(__name__)


class B2UploaderAPI:
    """High-level API for directory uploads."""

    def __init__(
        self,
        config: Optional[UploaderConfig] = None,
        client: Optional[B2Client] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the uploader API.

        Args:
            config: Uploader configuration (defaults to B2_* env vars)
            client: Optional pre-built B2 client
            sleep: Sleep function used between upload attempts
        """
        self.config = config or UploaderConfig.from_env()
        self.client = client or B2Client(
            auth_url=self.config.auth_url,
            timeout=self.config.timeout,
            upload_timeout=self.config.upload_timeout,
        )
        self.sleep = sleep

    def _credentials(self):
        if not self.config.account_id or not self.config.application_key:
            raise ConfigurationError(
                "B2 credentials required. Set B2_ACCOUNT_ID and B2_APPLICATION_KEY "
                "environment variables or pass them in the config."
            )
        return self.config.account_id, self.config.application_key

    def list_buckets(self) -> List[Bucket]:
        """List all buckets of the configured account."""
        account_id, application_key = self._credentials()
        auth = self.client.authorize_account(account_id, application_key)
        return self.client.list_buckets(
            auth.api_url, auth.authorization_token, auth.account_id
        )

    def open_session(self) -> SessionContext:
        """Authorize and resolve the target bucket.

        Uses the configured bucket name when set, otherwise the first bucket
        the account lists.

        Raises:
            AuthenticationError: If the credentials are rejected.
            BucketNotFoundError: If no matching bucket exists.
        """
        account_id, application_key = self._credentials()
        auth = self.client.authorize_account(account_id, application_key)

        bucket_name = self.config.bucket_name
        buckets = self.client.list_buckets(
            auth.api_url, auth.authorization_token, auth.account_id, bucket_name
        )
        if bucket_name:
            buckets = [b for b in buckets if b.bucket_name == bucket_name]
        if not buckets:
            raise BucketNotFoundError(bucket_name)

        bucket = buckets[0]
        if not bucket_name:
            logger.warning(
                f"No bucket specified, using first listed bucket {bucket.bucket_name}"
            )

        return SessionContext(
            api_url=auth.api_url,
            auth_token=auth.authorization_token,
            bucket_id=bucket.bucket_id,
            account_id=auth.account_id,
            bucket_name=bucket.bucket_name,
        )

    def upload_directory(
        self,
        directory: Union[str, Path],
        recursive: Optional[bool] = None,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
        session_ctx: Optional[SessionContext] = None,
        files: Optional[List[Path]] = None,
    ) -> RunSummary:
        """Upload a directory to the target bucket.

        Args:
            directory: Upload root
            recursive: Include sub directories (default: from config)
            progress_callback: Called with (completed, total, outcome)
            cancel_event: Stop starting new files once set
            session_ctx: Reuse an already opened session
            files: Pre-enumerated files under ``directory``

        Returns:
            Summary of all per-file outcomes
        """
        if recursive is None:
            recursive = self.config.recursive
        if files is None:
            files = enumerate_files(directory, recursive, self.config.exclude_patterns)
        session_ctx = session_ctx or self.open_session()

        orchestrator = UploadOrchestrator(
            self.client,
            session_ctx,
            root=directory,
            policy=self.config.retry_policy,
            content_type=self.config.content_type,
            sleep=self.sleep,
            progress_callback=progress_callback,
            cancel_event=cancel_event,
        )

        start_time = time.time()
        outcomes = orchestrator.run(files, self.config.concurrency)
        summary = RunSummary(
            outcomes=outcomes,
            elapsed_seconds=time.time() - start_time,
            bucket_name=session_ctx.bucket_name,
        )

        logger.info(
            f"Directory upload completed: {summary.uploaded} uploaded, "
            f"{summary.skipped} skipped, {summary.failed} failed"
        )
        if summary.failed:
            logger.error(
                f"{summary.failed} files remained failed after exhausting retries: "
                f"{[o.remote_name for o in summary.failed_outcomes]}"
            )
        return summary


# Convenience function for quick usage
def upload_directory(
    directory: Union[str, Path],
    account_id: Optional[str] = None,
    application_key: Optional[str] = None,
    bucket_name: Optional[str] = None,
    recursive: bool = False,
    concurrency: Optional[int] = None,
) -> RunSummary:
    """Quick function to upload a directory."""
    config = UploaderConfig.from_env(
        account_id=account_id,
        application_key=application_key,
        bucket_name=bucket_name,
        recursive=recursive,
        concurrency=concurrency,
    )
    return B2UploaderAPI(config).upload_directory(directory)
