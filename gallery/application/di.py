from dishka import AsyncContainer, from_context, make_async_container

from gallery.config import Config
from gallery.infrastructure.event import EventProvider, HandlerProvider
from gallery.infrastructure.mail import MailProvider
from gallery.infrastructure.messaging import MessagingProvider
from gallery.infrastructure.persistence import PersistenceProvider
from gallery.infrastructure.storage import StorageProvider
from gallery.util.di.base import Provider
from gallery.util.di.scope import Scope


class ConfigProvider(Provider):
    config = from_context(provides=Config, scope=Scope.APP)


def create_container(config: Config | None = None) -> AsyncContainer:
    if config is None:
        # Pydantic Settings populates from env vars at runtime
        config = Config()  # type: ignore[call-arg]

    return make_async_container(
        ConfigProvider(),
        PersistenceProvider(),
        MessagingProvider(),
        StorageProvider(),
        MailProvider(),
        HandlerProvider(),
        EventProvider(),
        context={Config: config},
        scopes=Scope,  # type: ignore[arg-type]  # Custom scope class
    )
