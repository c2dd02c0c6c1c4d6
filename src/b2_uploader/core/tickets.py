"""Single-use upload URL acquisition."""

import logging

from .client import B2Client
from .exceptions import B2UploaderError, TicketError
from .models import SessionContext, UploadTicket

logger = logging.getLogger(__name__)


class UploadTicketSource:
    """Request a fresh upload URL and token for every transfer attempt."""

    def __init__(self, client: B2Client, session_ctx: SessionContext):
        self.client = client
        self.session_ctx = session_ctx

    def request(self) -> UploadTicket:
        try:
            response = self.client.get_upload_url(self.session_ctx)
        except (B2UploaderError, ValueError) as e:
            raise TicketError(str(e)) from e

        logger.debug(f"Obtained upload URL {response.upload_url}")
        return UploadTicket.from_response(response)
