"""Auth domain services."""

from .credentials import bearer_token
from .gate import AccessGate, evaluate
from .routing import landing_route

__all__ = ["AccessGate", "bearer_token", "evaluate", "landing_route"]
