"""Role names carried in identity-token group claims."""

from enum import StrEnum


class Role(StrEnum):
    """Well-known portal groups.

    Role claims are free-form strings; these are the ones the screens check.
    Being a ``StrEnum``, each member compares equal to its claim string.
    """

    CLINIC_USER = "ClinicUser"
    HEALTHCARE_TEAM = "HealthcareTeam"
    ADMIN = "Admin"
