from dishka import AsyncContainer, from_context, make_async_container

from medisys.config import Config
from medisys.infrastructure.auth.di import AuthInfraProvider
from medisys.infrastructure.http.di import HttpProvider
from medisys.util.di.base import Provider
from medisys.util.di.scope import Scope


class ConfigProvider(Provider):
    config = from_context(provides=Config, scope=Scope.APP)


def create_container(config: Config | None = None) -> AsyncContainer:
    # Pydantic Settings populates from env vars at runtime
    if config is None:
        config = Config()  # type: ignore[call-arg]

    return make_async_container(
        ConfigProvider(),
        HttpProvider(),
        AuthInfraProvider(),
        context={Config: config},
        scopes=Scope,  # type: ignore[arg-type]  # Custom scope class
    )
