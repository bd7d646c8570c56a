"""Custom Dishka scopes for MediSys."""

from dishka import BaseScope, new_scope


class Scope(BaseScope):  # type: ignore[misc]  # BaseScope is designed to be subclassed
    """MediSys dependency injection scopes.

    - APP: Process lifetime (HTTP client, API adapter, identity session)

    Screens are not container-managed: each mount builds its own stores
    from the APP-scoped adapters.
    """

    APP = new_scope("APP")
