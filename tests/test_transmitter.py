"""Tests for single-attempt transfers."""

import hashlib
from unittest.mock import Mock

import pytest

from b2_uploader.core.exceptions import IntegrityMismatchError, NetworkError, TransmitError
from b2_uploader.core.models import UploadFileResponse, UploadTicket
from b2_uploader.core.transmitter import FileTransmitter

TICKET = UploadTicket(endpoint_url="https://pod/upload", ticket_token="up-tok")


@pytest.fixture
def local_file(tmp_path):
    path = tmp_path / "photo.jpg"
    path.write_bytes(b"jpeg bytes")
    return path


def _echo(echoed_sha1):
    """Fake upload that drains the stream and echoes ``echoed_sha1``."""

    def upload_file(ticket, file_name, stream, **kwargs):
        stream.read()
        return UploadFileResponse(file_id="4_z1", file_name=file_name, content_sha1=echoed_sha1)

    return upload_file


def test_successful_transfer(local_file):
    digest = hashlib.sha1(b"jpeg bytes").hexdigest()
    client = Mock()
    client.upload_file.side_effect = _echo(digest)

    result = FileTransmitter(client).transmit(TICKET, local_file, "photos/photo.jpg")

    assert result.remote_digest == digest
    assert result.size_bytes == len(b"jpeg bytes")
    assert result.file_id == "4_z1"
    args, kwargs = client.upload_file.call_args
    assert args[0] == TICKET
    assert args[1] == "photos/photo.jpg"
    assert kwargs["content_sha1"] == digest
    assert kwargs["content_length"] == len(b"jpeg bytes")
    assert kwargs["content_type"] == "b2/x-auto"


def test_uppercase_echo_is_accepted(local_file):
    digest = hashlib.sha1(b"jpeg bytes").hexdigest()
    client = Mock()
    client.upload_file.side_effect = _echo(digest.upper())

    result = FileTransmitter(client).transmit(TICKET, local_file, "photo.jpg")
    assert result.remote_digest == digest.upper()


def test_content_type_override(local_file):
    digest = hashlib.sha1(b"jpeg bytes").hexdigest()
    client = Mock()
    client.upload_file.side_effect = _echo(digest)

    FileTransmitter(client).transmit(TICKET, local_file, "photo.jpg", "image/jpeg")
    assert client.upload_file.call_args.kwargs["content_type"] == "image/jpeg"


def test_digest_mismatch_fails(local_file):
    client = Mock()
    client.upload_file.side_effect = _echo("0" * 40)

    with pytest.raises(IntegrityMismatchError) as exc_info:
        FileTransmitter(client).transmit(TICKET, local_file, "photo.jpg")
    assert exc_info.value.remote_digest == "0" * 40
    assert isinstance(exc_info.value, TransmitError)


def test_network_failure_becomes_transmit_error(local_file):
    client = Mock()
    client.upload_file.side_effect = NetworkError("B2 API error 503: busy", status_code=503)

    with pytest.raises(TransmitError, match="busy"):
        FileTransmitter(client).transmit(TICKET, local_file, "photo.jpg")


def test_digest_computed_before_network_call(local_file):
    order = []
    hasher = Mock()
    hasher.digest_file.side_effect = lambda path: order.append("hash") or "d" * 40
    hasher.matches.return_value = True
    client = Mock()
    client.upload_file.side_effect = lambda *a, **k: order.append("upload") or UploadFileResponse(
        content_sha1="d" * 40
    )

    FileTransmitter(client, hasher=hasher).transmit(TICKET, local_file, "photo.jpg")
    assert order == ["hash", "upload"]


def test_missing_file(tmp_path):
    client = Mock()
    with pytest.raises(TransmitError, match="Could not read"):
        FileTransmitter(client).transmit(TICKET, tmp_path / "gone.txt", "gone.txt")
    client.upload_file.assert_not_called()
