"""Concurrent upload of a file list with bounded parallelism."""

import logging
import os
import queue
import threading
import time
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from .client import B2Client
from .exceptions import B2UploaderError
from .files import normalize_remote_name
from .hashing import ContentHasher
from .models import (
    DEFAULT_CONTENT_TYPE,
    MIN_CONCURRENCY,
    ProbeResult,
    RetryPolicy,
    SessionContext,
    UploadOutcome,
    UploadStatus,
)
from .probe import RemoteIndexProbe
from .retry import RetryingUploadTask
from .tickets import UploadTicketSource
from .transmitter import FileTransmitter

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, UploadOutcome], None]


class UploadOrchestrator:
    """Upload a list of files through a fixed pool of workers.

    Workers pull paths from one shared queue. For each path a worker checks
    the remote listing, skips files already present with the same size and
    otherwise runs a :class:`RetryingUploadTask`. A failing file never stops
    the others; every path ends up with exactly one terminal outcome.
    """

    def __init__(
        self,
        client: B2Client,
        session_ctx: SessionContext,
        root: Optional[Union[str, Path]] = None,
        policy: Optional[RetryPolicy] = None,
        content_type: str = DEFAULT_CONTENT_TYPE,
        hasher: Optional[ContentHasher] = None,
        sleep: Callable[[float], None] = time.sleep,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        """Initialize the orchestrator.

        Args:
            client: B2 API client shared by all workers
            session_ctx: Authorized API location and target bucket
            root: Upload root that remote names are relative to
            policy: Attempt budget and backoff per file
            content_type: Content type sent with every upload
            hasher: Content hasher (SHA-1 by default)
            sleep: Sleep function used between attempts
            progress_callback: Called with (completed, total, outcome)
            cancel_event: When set, files not yet started are failed
        """
        self.session_ctx = session_ctx
        self.root = root
        self.policy = policy or RetryPolicy()
        self.content_type = content_type
        self.sleep = sleep
        self.progress_callback = progress_callback
        self.cancel_event = cancel_event

        self.probe = RemoteIndexProbe(client, session_ctx)
        self.ticket_source = UploadTicketSource(client, session_ctx)
        self.transmitter = FileTransmitter(client, hasher, content_type)

        self._lock = threading.Lock()
        self._completed = 0

    def _remote_name(self, file_path: str) -> str:
        return normalize_remote_name(file_path, self.root)

    def _failed(
        self, file_path: str, remote_name: str, error: str, error_kind: str
    ) -> UploadOutcome:
        return UploadOutcome(
            path=file_path,
            remote_name=remote_name,
            status=UploadStatus.FAILED,
            last_error=error,
            error_kind=error_kind,
        )

    def _warn_duplicates(self, files: Sequence[str]) -> None:
        names = []
        for file_path in files:
            try:
                names.append(self._remote_name(file_path))
            except B2UploaderError:
                continue
        for name, count in Counter(names).items():
            if count > 1:
                logger.warning(f"{count} local files map to remote name {name}; last upload wins")

    def process_file(self, file_path: str) -> UploadOutcome:
        """Probe, then upload if needed, a single file."""
        remote_name = self._remote_name(file_path)
        size_bytes = os.path.getsize(file_path)

        if self.probe.probe(remote_name, size_bytes) == ProbeResult.MATCHING_SIZE:
            logger.info(f"File {remote_name} exists already, skipping")
            return UploadOutcome(
                path=file_path,
                remote_name=remote_name,
                status=UploadStatus.SKIPPED,
                size_bytes=size_bytes,
            )

        task = RetryingUploadTask(
            file_path,
            remote_name,
            self.ticket_source,
            self.transmitter,
            policy=self.policy,
            content_type=self.content_type,
            size_bytes=size_bytes,
            sleep=self.sleep,
            cancel_event=self.cancel_event,
        )
        return task.run()

    def _safe_process(self, file_path: str) -> UploadOutcome:
        fallback_name = self._try_name(file_path)
        if self.cancel_event is not None and self.cancel_event.is_set():
            return self._failed(file_path, fallback_name, "cancelled", "cancelled")

        try:
            return self.process_file(file_path)
        except B2UploaderError as e:
            # Listing and name failures are not retried
            logger.error(f"Failed to process {file_path}: {e}")
            return self._failed(file_path, fallback_name, str(e), type(e).__name__)
        except OSError as e:
            logger.error(f"Cannot read {file_path}: {e}")
            return self._failed(file_path, fallback_name, str(e), "OSError")
        except Exception as e:
            logger.exception(f"Unexpected error processing {file_path}")
            kind = type(e).__name__
            return self._failed(file_path, fallback_name, f"{kind}: {e}", kind)

    def _worker(
        self, work: "queue.Queue", outcomes: List[Optional[UploadOutcome]], total: int
    ) -> None:
        while True:
            try:
                index, file_path = work.get_nowait()
            except queue.Empty:
                return

            outcome = self._safe_process(file_path)
            outcomes[index] = outcome

            with self._lock:
                self._completed += 1
                completed = self._completed

            logger.debug(
                f"Finished ({completed}/{total}): {outcome.remote_name} {outcome.status.value}"
            )
            if self.progress_callback:
                try:
                    self.progress_callback(completed, total, outcome)
                except Exception as e:
                    logger.warning(f"Progress callback error: {e}")

    def _try_name(self, file_path: str) -> str:
        try:
            return self._remote_name(file_path)
        except B2UploaderError:
            return file_path.replace("\\", "/").lstrip("/")

    def run(
        self, files: Sequence[Union[str, Path]], concurrency: int = MIN_CONCURRENCY
    ) -> List[UploadOutcome]:
        """Upload ``files`` with at most ``concurrency`` files in flight.

        Returns:
            One outcome per input path, in input order
        """
        if concurrency < MIN_CONCURRENCY:
            logger.warning(
                f"Concurrency {concurrency} is below the minimum, using {MIN_CONCURRENCY}"
            )
            concurrency = MIN_CONCURRENCY

        paths = [str(f) for f in files]
        total = len(paths)
        if not paths:
            return []

        self._warn_duplicates(paths)

        work: "queue.Queue" = queue.Queue()
        for index, file_path in enumerate(paths):
            work.put((index, file_path))
        outcomes: List[Optional[UploadOutcome]] = [None] * total

        with self._lock:
            self._completed = 0

        logger.info(
            f"Starting upload of {total} files to bucket "
            f"{self.session_ctx.bucket_name or self.session_ctx.bucket_id} "
            f"with {concurrency} workers"
        )

        with ThreadPoolExecutor(max_workers=concurrency) as executor:
            futures = [
                executor.submit(self._worker, work, outcomes, total)
                for _ in range(min(concurrency, total))
            ]
            for future in as_completed(futures):
                future.result()

        return [outcome for outcome in outcomes if outcome is not None]
