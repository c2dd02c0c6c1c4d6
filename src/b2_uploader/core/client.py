"""Backblaze B2 native API client."""

import logging
from typing import Any, BinaryIO, Dict, List, Optional
from urllib.parse import quote

import requests

from .exceptions import AuthenticationError, NetworkError
from .models import (
    DEFAULT_AUTH_URL,
    DEFAULT_CONTENT_TYPE,
    AuthorizeAccountResponse,
    Bucket,
    GetUploadUrlResponse,
    ListBucketsResponse,
    ListFileNamesResponse,
    SessionContext,
    UploadFileResponse,
    UploadTicket,
)


logger = logging.getLogger(__name__)


class B2Client:
    """Client for B2 API operations.

    The client holds no account state. Every call takes the API URL and
    token it needs, usually through a :class:`SessionContext`.
    """

    API_PREFIX = "/b2api/v1"

    def __init__(
        self,
        auth_url: str = DEFAULT_AUTH_URL,
        timeout: int = 30,
        upload_timeout: int = 600,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the B2 client.

        Args:
            auth_url: b2_authorize_account endpoint
            timeout: Timeout in seconds for API calls
            upload_timeout: Timeout in seconds for upload transfers
            session: Optional pre-configured requests session
        """
        self.auth_url = auth_url
        self.timeout = timeout
        self.upload_timeout = upload_timeout
        self.session = session or requests.Session()

    def _make_request(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        """Make a request and return the decoded JSON body."""
        kwargs.setdefault("timeout", self.timeout)

        try:
            response = self.session.request(method, url, **kwargs)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.HTTPError as e:
            raise self._api_error(e.response, url) from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Request to {url} failed: {e}")
            raise NetworkError(f"Request to {url} failed: {e}") from e
        except ValueError as e:
            logger.error(f"Invalid JSON response from {url}: {e}")
            raise NetworkError(f"Invalid JSON response from {url}") from e

    @staticmethod
    def _api_error(response: Optional[requests.Response], url: str) -> NetworkError:
        """Turn a non-2xx response into a NetworkError carrying the B2 error code."""
        if response is None:
            return NetworkError(f"Request to {url} failed")

        code = None
        message = response.text
        try:
            error_data = response.json()
            code = error_data.get("code")
            message = error_data.get("message") or message
        except ValueError:
            pass

        logger.error(f"API request to {url} failed: {response.status_code} {code}: {message}")
        return NetworkError(
            f"B2 API error {response.status_code}: {message}",
            status_code=response.status_code,
            code=code,
        )

    def _api_post(
        self, api_url: str, auth_token: str, operation: str, payload: Dict[str, Any]
    ) -> Dict[str, Any]:
        url = f"{api_url}{self.API_PREFIX}/{operation}"
        return self._make_request(
            "POST", url, json=payload, headers={"Authorization": auth_token}
        )

    def authorize_account(
        self, account_id: str, application_key: str
    ) -> AuthorizeAccountResponse:
        """Exchange account credentials for an API URL and session token.

        Raises:
            AuthenticationError: If the credentials are rejected or the
                authorization endpoint cannot be reached.
        """
        try:
            data = self._make_request(
                "GET", self.auth_url, auth=(account_id, application_key)
            )
        except NetworkError as e:
            raise AuthenticationError(f"Authorization failed: {e}") from e

        auth = AuthorizeAccountResponse(**data)
        logger.debug(f"Authorized account {auth.account_id} against {auth.api_url}")
        return auth

    def list_buckets(
        self,
        api_url: str,
        auth_token: str,
        account_id: str,
        bucket_name: Optional[str] = None,
    ) -> List[Bucket]:
        """List buckets of an account, optionally filtered to one name."""
        payload: Dict[str, Any] = {"accountId": account_id}
        if bucket_name:
            payload["bucketName"] = bucket_name
        data = self._api_post(api_url, auth_token, "b2_list_buckets", payload)
        return ListBucketsResponse(**data).buckets

    def list_file_names(
        self,
        session_ctx: SessionContext,
        start_file_name: Optional[str] = None,
        max_file_count: int = 100,
    ) -> ListFileNamesResponse:
        """List file names in the session's bucket starting at ``start_file_name``."""
        payload: Dict[str, Any] = {
            "bucketId": session_ctx.bucket_id,
            "maxFileCount": max_file_count,
        }
        if start_file_name:
            payload["startFileName"] = start_file_name
        data = self._api_post(
            session_ctx.api_url, session_ctx.auth_token, "b2_list_file_names", payload
        )
        return ListFileNamesResponse(**data)

    def get_upload_url(self, session_ctx: SessionContext) -> GetUploadUrlResponse:
        """Request a fresh upload URL and token for the session's bucket."""
        data = self._api_post(
            session_ctx.api_url,
            session_ctx.auth_token,
            "b2_get_upload_url",
            {"bucketId": session_ctx.bucket_id},
        )
        return GetUploadUrlResponse(**data)

    def upload_file(
        self,
        ticket: UploadTicket,
        file_name: str,
        stream: BinaryIO,
        content_sha1: str,
        content_length: int,
        content_type: str = DEFAULT_CONTENT_TYPE,
        last_modified_millis: Optional[int] = None,
    ) -> UploadFileResponse:
        """Stream one file body to an upload URL.

        Args:
            ticket: Upload URL and token from b2_get_upload_url
            file_name: Remote file name (percent-encoded on the wire)
            stream: Open binary file positioned at the start
            content_sha1: Hex SHA-1 of the body
            content_length: Body size in bytes
            content_type: MIME type, ``b2/x-auto`` lets B2 pick one
            last_modified_millis: Optional source mtime stored as file info

        Returns:
            Parsed upload response
        """
        headers = {
            "Authorization": ticket.ticket_token,
            "X-Bz-File-Name": quote(file_name, safe="/"),
            "X-Bz-Content-Sha1": content_sha1,
            "Content-Type": content_type,
            "Content-Length": str(content_length),
        }
        if last_modified_millis is not None:
            headers["X-Bz-Info-src_last_modified_millis"] = str(last_modified_millis)

        data = self._make_request(
            "POST",
            ticket.endpoint_url,
            headers=headers,
            data=stream,
            timeout=self.upload_timeout,
        )
        return UploadFileResponse(**data)
