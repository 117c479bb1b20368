"""Unit tests for HttpMailer adapter."""

import json

import httpx
import pytest

from gallery.domain.shared.error import ExternalServiceError
from gallery.domain.shared.port.mailer import MailMessage
from gallery.infrastructure.mail.http import HttpMailer, LogMailer

MESSAGE = MailMessage(
    to="owner@example.com",
    sender="no-reply@example.com",
    subject="Image Status Update: Pass",
    body="Dear Photographer,",
)


class TestHttpMailer:
    @pytest.mark.asyncio
    async def test_posts_message_as_json(self):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(202)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            mailer = HttpMailer(client, "https://mail.example.com/send", token="secret")
            await mailer.send(MESSAGE)

        [request] = requests
        assert request.method == "POST"
        assert str(request.url) == "https://mail.example.com/send"
        assert request.headers["Authorization"] == "Bearer secret"
        assert json.loads(request.content) == {
            "to": "owner@example.com",
            "from": "no-reply@example.com",
            "subject": "Image Status Update: Pass",
            "body": "Dear Photographer,",
        }

    @pytest.mark.asyncio
    async def test_no_token_no_auth_header(self):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            await HttpMailer(client, "https://mail.example.com/send").send(MESSAGE)

        assert "Authorization" not in requests[0].headers

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(500))

        async with httpx.AsyncClient(transport=transport) as client:
            mailer = HttpMailer(client, "https://mail.example.com/send")
            with pytest.raises(ExternalServiceError):
                await mailer.send(MESSAGE)

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            mailer = HttpMailer(client, "https://mail.example.com/send")
            with pytest.raises(ExternalServiceError, match="refused"):
                await mailer.send(MESSAGE)


class TestLogMailer:
    @pytest.mark.asyncio
    async def test_logs_instead_of_sending(self, caplog):
        with caplog.at_level("INFO"):
            await LogMailer().send(MESSAGE)

        assert "owner@example.com" in caplog.text
