"""MediSys dashboard core: access gating and paginated upload views."""

__version__ = "0.1.0"
