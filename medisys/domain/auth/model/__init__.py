"""Auth domain models."""

from .decision import UNRESOLVED, AccessDecision, AccessState
from .identity import Anonymous, Identity, Principal
from .role import Role

__all__ = [
    "UNRESOLVED",
    "AccessDecision",
    "AccessState",
    "Anonymous",
    "Identity",
    "Principal",
    "Role",
]
