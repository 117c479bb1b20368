from typing import AsyncIterable

import httpx
from dishka import provide

from gallery.config import Config
from gallery.domain.shared.port.mailer import Mailer
from gallery.infrastructure.mail.http import HttpMailer, LogMailer
from gallery.util.di.base import Provider
from gallery.util.di.scope import Scope


class MailProvider(Provider):
    @provide(scope=Scope.APP)
    async def get_mailer(self, config: Config) -> AsyncIterable[Mailer]:
        if not config.mail.api_url:
            yield LogMailer()
            return
        async with httpx.AsyncClient(timeout=config.mail.timeout) as client:
            yield HttpMailer(client, config.mail.api_url, config.mail.api_token)
