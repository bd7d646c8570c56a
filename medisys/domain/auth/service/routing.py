"""Landing screen selection for a freshly signed-in actor."""

from medisys.domain.auth.model.identity import Identity, Principal
from medisys.domain.auth.model.role import Role

# Checked in order; the first held role wins
LANDING_ROUTES: tuple[tuple[Role, str], ...] = (
    (Role.CLINIC_USER, "/upload"),
    (Role.HEALTHCARE_TEAM, "/reports"),
    (Role.ADMIN, "/admin"),
)


def landing_route(identity: Identity) -> str | None:
    """Route for the actor's home screen, or None when no group applies."""
    if not isinstance(identity, Principal):
        return None
    for role, route in LANDING_ROUTES:
        if role in identity.roles:
            return route
    return None
