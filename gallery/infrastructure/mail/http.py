"""HTTP adapter for the Mailer port."""

import logging

import httpx

from gallery.domain.shared.error import ExternalServiceError
from gallery.domain.shared.port.mailer import Mailer, MailMessage

logger = logging.getLogger(__name__)


class HttpMailer(Mailer):
    """Posts messages as JSON to a transactional mail API using httpx."""

    def __init__(self, client: httpx.AsyncClient, url: str, token: str = "") -> None:
        self._client = client
        self._url = url
        self._token = token

    async def send(self, message: MailMessage) -> None:
        headers = {"Authorization": f"Bearer {self._token}"} if self._token else {}
        payload = {
            "to": message.to,
            "from": message.sender,
            "subject": message.subject,
            "body": message.body,
        }
        try:
            response = await self._client.post(self._url, json=payload, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"Mail API request failed: {e}") from e


class LogMailer(Mailer):
    """Dry-run mailer: logs instead of sending."""

    async def send(self, message: MailMessage) -> None:
        logger.info(f"Mail to {message.to}: {message.subject}")
