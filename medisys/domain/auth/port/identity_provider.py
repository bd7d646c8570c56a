"""Identity provider port for the auth domain."""

from abc import abstractmethod
from collections.abc import Callable
from enum import StrEnum
from typing import Protocol

from medisys.domain.auth.model.identity import Identity


class IdentityEvent(StrEnum):
    """Change notifications emitted by an identity provider."""

    SIGNED_IN = "signed_in"
    TOKEN_REFRESHED = "token_refreshed"
    SIGNED_OUT = "signed_out"


IdentityListener = Callable[[IdentityEvent], None]
Unsubscribe = Callable[[], None]


class IdentityProvider(Protocol):
    """Port for the external identity provider (sign-in UI, token refresh).

    Both the access gate and the per-request credential lookup depend on
    this single abstraction rather than on ambient session state.
    """

    @abstractmethod
    async def current(self) -> Identity:
        """Return the current identity snapshot.

        Returns ``Anonymous`` when nobody is signed in.

        Raises:
            IdentityError: If the session cannot be read (e.g. expired or
                malformed token).
        """
        ...

    @abstractmethod
    def subscribe(self, listener: IdentityListener) -> Unsubscribe:
        """Register ``listener`` for identity events; returns an unsubscribe callable."""
        ...
