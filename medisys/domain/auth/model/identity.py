"""Identity hierarchy: what the identity provider says about the current actor."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Identity:
    """Base for all identities."""

    pass


@dataclass(frozen=True)
class Anonymous(Identity):
    """Not signed in."""

    pass


@dataclass(frozen=True)
class Principal(Identity):
    """A signed-in actor, decoded from its ID token.

    Immutable snapshot: a token refresh produces a new Principal.
    """

    token: str = field(repr=False)
    subject: str
    roles: frozenset[str] = frozenset()
    email: str | None = None
    username: str | None = None
    clinic_id: str | None = None

    def has_any_role(self, roles: frozenset[str]) -> bool:
        """True if at least one role claim is in ``roles``."""
        return not self.roles.isdisjoint(roles)
