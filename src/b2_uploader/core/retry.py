"""Bounded-retry upload of a single file."""

import logging
import threading
import time
from typing import Callable, Optional

from pydantic import BaseModel

from .exceptions import B2UploaderError, RetriesExhaustedError
from .models import (
    RetryPolicy,
    TaskState,
    TransmitResult,
    UploadOutcome,
    UploadStatus,
)
from .tickets import UploadTicketSource
from .transmitter import FileTransmitter

logger = logging.getLogger(__name__)


class AttemptResult(BaseModel):
    """Result of one ticket + transmit attempt."""

    result: Optional[TransmitResult] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.result is not None


class RetryingUploadTask:
    """Upload one file with a bounded number of attempts.

    Every attempt requests a fresh upload ticket before transmitting. Ticket
    and transfer failures, integrity mismatches included, end the attempt;
    the task sleeps for the policy's delay and tries again until the attempt
    budget is spent.
    """

    def __init__(
        self,
        file_path: str,
        remote_name: str,
        ticket_source: UploadTicketSource,
        transmitter: FileTransmitter,
        policy: Optional[RetryPolicy] = None,
        content_type: Optional[str] = None,
        size_bytes: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.file_path = file_path
        self.remote_name = remote_name
        self.ticket_source = ticket_source
        self.transmitter = transmitter
        self.policy = policy or RetryPolicy()
        self.content_type = content_type
        self.size_bytes = size_bytes
        self.sleep = sleep
        self.cancel_event = cancel_event

        self.state = TaskState.PENDING
        self.attempts = 0
        self.last_error: Optional[str] = None

    def _attempt(self) -> AttemptResult:
        try:
            ticket = self.ticket_source.request()
            result = self.transmitter.transmit(
                ticket, self.file_path, self.remote_name, self.content_type
            )
        except B2UploaderError as e:
            return AttemptResult(error=str(e), error_kind=type(e).__name__)
        return AttemptResult(result=result)

    def _wait(self, delay: float) -> bool:
        """Sleep between attempts; return True if the run was cancelled."""
        if self.cancel_event is not None:
            return self.cancel_event.wait(delay)
        self.sleep(delay)
        return False

    def _outcome(
        self,
        status: UploadStatus,
        result: Optional[TransmitResult] = None,
        error_kind: Optional[str] = None,
    ) -> UploadOutcome:
        return UploadOutcome(
            path=self.file_path,
            remote_name=self.remote_name,
            status=status,
            attempts=self.attempts,
            last_error=self.last_error,
            error_kind=error_kind,
            remote_digest=result.remote_digest if result else None,
            size_bytes=result.size_bytes if result else self.size_bytes,
        )

    def run(self) -> UploadOutcome:
        """Drive the task to SUCCEEDED or EXHAUSTED and return its outcome."""
        max_attempts = self.policy.max_attempts
        self.state = TaskState.ATTEMPTING
        self.attempts = 1

        while True:
            attempt = self._attempt()
            if attempt.ok:
                self.state = TaskState.SUCCEEDED
                return self._outcome(UploadStatus.UPLOADED, attempt.result)

            self.last_error = attempt.error
            logger.warning(
                f"{self.remote_name}: attempt {self.attempts}/{max_attempts} failed "
                f"({attempt.error_kind}): {attempt.error}"
            )
            if self.attempts >= max_attempts:
                break

            delay = self.policy.delay_for(self.attempts)
            logger.info(f"{self.remote_name}: retrying in {delay:g}s...")
            if self._wait(delay):
                logger.warning(f"{self.remote_name}: cancelled during backoff")
                self.last_error = f"cancelled: {self.last_error}"
                self.state = TaskState.EXHAUSTED
                return self._outcome(UploadStatus.FAILED, error_kind="cancelled")
            self.attempts += 1

        self.state = TaskState.EXHAUSTED
        error = RetriesExhaustedError(self.file_path, self.attempts, self.last_error)
        logger.error(str(error))
        return self._outcome(UploadStatus.FAILED, error_kind=type(error).__name__)
