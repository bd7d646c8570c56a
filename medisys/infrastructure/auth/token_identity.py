"""IdentityProvider adapter backed by the current ID token."""

import logging

from medisys.config import AuthConfig
from medisys.domain.auth.model.identity import Anonymous, Identity
from medisys.domain.auth.port.identity_provider import (
    IdentityEvent,
    IdentityListener,
    IdentityProvider,
    Unsubscribe,
)
from medisys.infrastructure.auth.claims import decode_principal

logger = logging.getLogger(__name__)


class TokenIdentityProvider(IdentityProvider):
    """Holds the session token handed over by the hosted sign-in flow.

    ``sign_in``, ``refresh`` and ``sign_out`` replace the token and notify
    subscribers. ``current()`` decodes the token on every call so that an
    expired token reads as an identity error rather than a stale principal.
    """

    def __init__(self, config: AuthConfig, token: str | None = None) -> None:
        self._config = config
        self._token = token
        self._listeners: list[IdentityListener] = []

    @property
    def signed_in(self) -> bool:
        return self._token is not None

    async def current(self) -> Identity:
        token = self._token
        if not token:
            return Anonymous()
        return decode_principal(
            token,
            self._config.role_claims,
            verify_expiry=self._config.verify_expiry,
        )

    def subscribe(self, listener: IdentityListener) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def sign_in(self, token: str) -> None:
        self._token = token
        self._emit(IdentityEvent.SIGNED_IN)

    def refresh(self, token: str) -> None:
        self._token = token
        self._emit(IdentityEvent.TOKEN_REFRESHED)

    def sign_out(self) -> None:
        self._token = None
        self._emit(IdentityEvent.SIGNED_OUT)

    def _emit(self, event: IdentityEvent) -> None:
        logger.info("Identity %s (%d subscribers)", event, len(self._listeners))
        for listener in list(self._listeners):
            listener(event)
