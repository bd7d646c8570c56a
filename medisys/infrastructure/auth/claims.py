"""Identity-token claim decoding."""

import logging
from collections.abc import Iterable
from typing import Any

import jwt

from medisys.domain.auth.model.identity import Principal
from medisys.domain.shared.error import IdentityError

logger = logging.getLogger(__name__)


def decode_principal(
    token: str,
    role_claims: Iterable[str],
    verify_expiry: bool = True,
) -> Principal:
    """Build a Principal from an ID token's payload.

    The signature is not checked here: the remote API verifies every token
    it receives, the client only reads claims to decide what to show.

    Args:
        token: Encoded JWT.
        role_claims: Claim names whose values are merged into the role set.
        verify_expiry: Treat an expired token as no identity.

    Raises:
        IdentityError: If the token is expired, malformed, or has no subject.
    """
    try:
        payload = jwt.decode(
            token,
            options={"verify_signature": False, "verify_exp": verify_expiry},
        )
    except jwt.ExpiredSignatureError as e:
        raise IdentityError("Session expired", code="token_expired") from e
    except jwt.InvalidTokenError as e:
        logger.debug("Undecodable identity token: %s", e)
        raise IdentityError("Invalid identity token", code="invalid_token") from e

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        raise IdentityError("Identity token has no subject", code="invalid_token")

    roles = frozenset(role for claim in role_claims for role in _strings(payload.get(claim)))
    return Principal(
        token=token,
        subject=subject,
        roles=roles,
        email=_string(payload.get("email")),
        username=_string(payload.get("cognito:username")) or _string(payload.get("username")),
        clinic_id=_string(payload.get("custom:clinicId")),
    )


def _strings(value: Any) -> list[str]:
    """Role claims may be a single string or a list; non-strings are ignored."""
    if isinstance(value, str):
        return [value] if value else []
    if isinstance(value, list):
        return [v for v in value if isinstance(v, str) and v]
    return []


def _string(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None
