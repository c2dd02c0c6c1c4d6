"""Tests for the B2 HTTP client."""

import io
import json
from unittest.mock import Mock

import pytest
import requests

from b2_uploader.core.client import B2Client
from b2_uploader.core.exceptions import AuthenticationError, NetworkError
from b2_uploader.core.models import UploadTicket


def make_response(status_code, payload=None, text=None):
    response = requests.Response()
    response.status_code = status_code
    response.url = "https://api001.backblazeb2.com/b2api/v1/op"
    if payload is not None:
        response._content = json.dumps(payload).encode()
    else:
        response._content = (text or "").encode()
    return response


@pytest.fixture
def http():
    return Mock(spec=requests.Session)


@pytest.fixture
def client(http):
    return B2Client(timeout=10, upload_timeout=60, session=http)


class TestAuthorize:
    def test_success(self, client, http):
        http.request.return_value = make_response(
            200,
            {
                "accountId": "acct",
                "apiUrl": "https://api001.backblazeb2.com",
                "authorizationToken": "tok",
                "downloadUrl": "https://f001.backblazeb2.com",
            },
        )

        auth = client.authorize_account("acct", "secret")

        assert auth.api_url == "https://api001.backblazeb2.com"
        assert auth.authorization_token == "tok"
        method, url = http.request.call_args.args
        assert method == "GET"
        assert url.endswith("/b2api/v1/b2_authorize_account")
        assert http.request.call_args.kwargs["auth"] == ("acct", "secret")
        assert http.request.call_args.kwargs["timeout"] == 10

    def test_rejected_credentials(self, client, http):
        http.request.return_value = make_response(
            401, {"status": 401, "code": "bad_auth_token", "message": "Invalid key"}
        )
        with pytest.raises(AuthenticationError, match="Invalid key"):
            client.authorize_account("acct", "wrong")

    def test_unreachable(self, client, http):
        http.request.side_effect = requests.exceptions.ConnectionError("refused")
        with pytest.raises(AuthenticationError):
            client.authorize_account("acct", "secret")


class TestApiCalls:
    def test_list_buckets(self, client, http):
        http.request.return_value = make_response(
            200,
            {"buckets": [{"bucketId": "b1", "bucketName": "photos", "bucketType": "allPrivate"}]},
        )

        buckets = client.list_buckets("https://api", "tok", "acct", bucket_name="photos")

        assert buckets[0].bucket_id == "b1"
        method, url = http.request.call_args.args
        assert (method, url) == ("POST", "https://api/b2api/v1/b2_list_buckets")
        assert http.request.call_args.kwargs["json"] == {"accountId": "acct", "bucketName": "photos"}
        assert http.request.call_args.kwargs["headers"] == {"Authorization": "tok"}

    def test_list_file_names(self, client, http, session_ctx):
        http.request.return_value = make_response(
            200, {"files": [{"fileName": "a.txt", "size": 5}], "nextFileName": "b.bin"}
        )

        listing = client.list_file_names(session_ctx, start_file_name="a.txt", max_file_count=10)

        assert listing.files[0].name == "a.txt"
        assert listing.next_file_name == "b.bin"
        assert http.request.call_args.kwargs["json"] == {
            "bucketId": "bucket-1",
            "maxFileCount": 10,
            "startFileName": "a.txt",
        }

    def test_get_upload_url(self, client, http, session_ctx):
        http.request.return_value = make_response(
            200, {"bucketId": "bucket-1", "uploadUrl": "https://pod/up", "authorizationToken": "up-tok"}
        )
        response = client.get_upload_url(session_ctx)
        assert response.upload_url == "https://pod/up"
        assert response.authorization_token == "up-tok"

    def test_api_error_carries_code(self, client, http, session_ctx):
        http.request.return_value = make_response(
            503, {"status": 503, "code": "service_unavailable", "message": "busy"}
        )
        with pytest.raises(NetworkError) as exc_info:
            client.get_upload_url(session_ctx)
        assert exc_info.value.status_code == 503
        assert exc_info.value.code == "service_unavailable"

    def test_api_error_without_json_body(self, client, http, session_ctx):
        http.request.return_value = make_response(502, text="Bad Gateway")
        with pytest.raises(NetworkError, match="Bad Gateway"):
            client.get_upload_url(session_ctx)

    def test_timeout_becomes_network_error(self, client, http, session_ctx):
        http.request.side_effect = requests.exceptions.ReadTimeout("timed out")
        with pytest.raises(NetworkError):
            client.list_file_names(session_ctx, "a.txt")


class TestUploadFile:
    def test_headers_and_body(self, client, http):
        http.request.return_value = make_response(
            200, {"fileId": "4_z1", "fileName": "dir/a b.txt", "contentSha1": "abc", "contentLength": 3}
        )
        ticket = UploadTicket(endpoint_url="https://pod/upload", ticket_token="up-tok")
        body = io.BytesIO(b"abc")

        response = client.upload_file(
            ticket,
            "dir/a b.txt",
            body,
            content_sha1="abc",
            content_length=3,
            last_modified_millis=1700000000000,
        )

        assert response.content_sha1 == "abc"
        method, url = http.request.call_args.args
        assert (method, url) == ("POST", "https://pod/upload")
        kwargs = http.request.call_args.kwargs
        assert kwargs["data"] is body
        assert kwargs["timeout"] == 60
        assert kwargs["headers"] == {
            "Authorization": "up-tok",
            "X-Bz-File-Name": "dir/a%20b.txt",
            "X-Bz-Content-Sha1": "abc",
            "Content-Type": "b2/x-auto",
            "Content-Length": "3",
            "X-Bz-Info-src_last_modified_millis": "1700000000000",
        }
