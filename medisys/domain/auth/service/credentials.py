"""Bearer credential lookup for authenticated remote calls."""

import logging

from medisys.domain.auth.model.identity import Principal
from medisys.domain.auth.port.identity_provider import IdentityProvider
from medisys.domain.shared.error import IdentityError
from medisys.domain.shared.result import Err, ErrorKind, Ok, Result

logger = logging.getLogger(__name__)

NOT_SIGNED_IN = "Not signed in"
SESSION_UNAVAILABLE = "Session unavailable"


async def bearer_token(provider: IdentityProvider) -> Result[str]:
    """Current ID token, or an identity ``Err`` when nobody is signed in."""
    try:
        identity = await provider.current()
    except IdentityError as e:
        return Err(ErrorKind.IDENTITY, e.message)
    except Exception as e:  # any failure reading the session is a missing credential
        logger.warning("Identity lookup failed: %s", e)
        return Err(ErrorKind.IDENTITY, SESSION_UNAVAILABLE)
    if not isinstance(identity, Principal) or not identity.token:
        return Err(ErrorKind.IDENTITY, NOT_SIGNED_IN)
    return Ok(identity.token)
