"""Shared fixtures: an in-memory B2 backend and sample upload trees."""

import hashlib
import threading
import time

import pytest

from b2_uploader.core.exceptions import AuthenticationError, NetworkError
from b2_uploader.core.models import (
    AuthorizeAccountResponse,
    Bucket,
    GetUploadUrlResponse,
    ListFileNamesResponse,
    RemoteFileEntry,
    SessionContext,
    UploadFileResponse,
)


class FakeB2Client:
    """Thread-safe stand-in for B2Client backed by a dict of remote files."""

    def __init__(self, remote=None, buckets=None):
        self.remote = {name: (size, None) for name, size in (remote or {}).items()}
        self.buckets = buckets if buckets is not None else [
            Bucket(bucket_id="bucket-1", bucket_name="photos"),
            Bucket(bucket_id="bucket-2", bucket_name="backups"),
        ]
        self.lock = threading.Lock()

        self.authorize_calls = 0
        self.list_calls = []
        self.ticket_requests = 0
        self.upload_calls = []
        self.tickets_used = []

        self.reject_credentials = False
        self.list_errors = set()
        self.ticket_failures = 0
        self.upload_failures = {}
        self.corrupt = set()
        self.upload_delay = 0.0
        self.in_flight = 0
        self.max_in_flight = 0

    def authorize_account(self, account_id, application_key):
        self.authorize_calls += 1
        if self.reject_credentials:
            raise AuthenticationError("Authorization failed: bad_auth_token")
        return AuthorizeAccountResponse(
            account_id=account_id,
            api_url="https://api001.backblazeb2.com",
            authorization_token="account-token",
        )

    def list_buckets(self, api_url, auth_token, account_id, bucket_name=None):
        if bucket_name:
            return [b for b in self.buckets if b.bucket_name == bucket_name]
        return list(self.buckets)

    def list_file_names(self, session_ctx, start_file_name=None, max_file_count=100):
        with self.lock:
            self.list_calls.append(start_file_name)
        if start_file_name in self.list_errors:
            raise NetworkError("B2 API error 503: service unavailable", status_code=503)
        names = sorted(
            n for n in self.remote if start_file_name is None or n >= start_file_name
        )[:max_file_count]
        return ListFileNamesResponse(
            files=[RemoteFileEntry(name=n, size_bytes=self.remote[n][0]) for n in names]
        )

    def get_upload_url(self, session_ctx):
        with self.lock:
            self.ticket_requests += 1
            number = self.ticket_requests
            if self.ticket_failures:
                self.ticket_failures -= 1
                raise NetworkError("B2 API error 503: too busy", status_code=503)
        return GetUploadUrlResponse(
            upload_url=f"https://pod-000-1000-00.backblaze.com/b2api/v1/b2_upload_file/{number}",
            authorization_token=f"upload-token-{number}",
        )

    def upload_file(
        self,
        ticket,
        file_name,
        stream,
        content_sha1,
        content_length,
        content_type="b2/x-auto",
        last_modified_millis=None,
    ):
        with self.lock:
            self.upload_calls.append(file_name)
            self.tickets_used.append(ticket.ticket_token)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.upload_delay:
                time.sleep(self.upload_delay)
            data = stream.read()

            with self.lock:
                failures = self.upload_failures.get(file_name, 0)
                if failures:
                    self.upload_failures[file_name] = failures - 1
            if failures:
                raise NetworkError("B2 API error 503: service_unavailable", status_code=503)

            digest = hashlib.sha1(data).hexdigest()
            if file_name in self.corrupt:
                echoed = "0" * 40
            else:
                echoed = digest
                with self.lock:
                    self.remote[file_name] = (len(data), digest)

            return UploadFileResponse(
                file_id=f"4_z{len(self.upload_calls)}",
                file_name=file_name,
                content_sha1=echoed,
                content_length=len(data),
            )
        finally:
            with self.lock:
                self.in_flight -= 1


@pytest.fixture
def fake_client():
    return FakeB2Client()


@pytest.fixture
def session_ctx():
    return SessionContext(
        api_url="https://api001.backblazeb2.com",
        auth_token="account-token",
        bucket_id="bucket-1",
        account_id="acct",
        bucket_name="photos",
    )


class SleepRecorder:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.fixture
def sleeps():
    """Record backoff sleeps instead of waiting."""
    return SleepRecorder()


@pytest.fixture
def upload_dir(tmp_path):
    """A small tree: two top-level files and one nested file."""
    root = tmp_path / "data"
    (root / "sub").mkdir(parents=True)
    (root / "a.txt").write_bytes(b"alpha")
    (root / "b.bin").write_bytes(b"\x00\x01\x02\x03")
    (root / "sub" / "c.txt").write_bytes(b"charlie!")
    return root
