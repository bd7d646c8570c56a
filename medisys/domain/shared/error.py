"""Error hierarchy for MediSys.

Error layers:
- MedisysError: Base class for all MediSys errors
- DomainError: Identity and authorization problems, invalid input
- InfrastructureError: System-level failures such as misconfiguration

Remote failures never travel as exceptions past the API client: they are
turned into ``Err`` values (see ``medisys.domain.shared.result``).
"""


class MedisysError(Exception):
    """Base class for all MediSys errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(message)


# =============================================================================
# Domain Errors
# =============================================================================


class DomainError(MedisysError):
    """Base class for domain errors."""


class IdentityError(DomainError):
    """No usable identity: signed out, expired or undecodable token."""


class ValidationError(DomainError):
    """Input validation failed."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field


# =============================================================================
# Infrastructure Errors
# =============================================================================


class InfrastructureError(MedisysError):
    """Base class for infrastructure/system errors."""


class ConfigurationError(InfrastructureError):
    """System misconfiguration detected."""
