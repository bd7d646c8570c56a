"""DI provider for auth infrastructure."""

from dishka import provide

from medisys.config import Config
from medisys.domain.auth.port.identity_provider import IdentityProvider
from medisys.infrastructure.auth.token_identity import TokenIdentityProvider
from medisys.util.di.base import Provider
from medisys.util.di.scope import Scope


class AuthInfraProvider(Provider):
    """DI provider for the identity session."""

    @provide(scope=Scope.APP)
    def get_token_identity(self, config: Config) -> TokenIdentityProvider:
        """One session per process; the sign-in flow hands it tokens."""
        return TokenIdentityProvider(config=config.auth)

    @provide(scope=Scope.APP)
    def get_identity_provider(self, session: TokenIdentityProvider) -> IdentityProvider:
        return session
