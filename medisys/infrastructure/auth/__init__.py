from medisys.infrastructure.auth.di import AuthInfraProvider
from medisys.infrastructure.auth.token_identity import TokenIdentityProvider

__all__ = ["AuthInfraProvider", "TokenIdentityProvider"]
