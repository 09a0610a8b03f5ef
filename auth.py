import logging
from typing import Optional

from fastapi import Depends, Header

import config
from errors import AuthError, Forbidden
from models import ROLE_ADMIN
from security import Identity, verify_token

logger = logging.getLogger(__name__)


def parse_bearer(authorization: Optional[str]) -> str:
    if not authorization:
        raise AuthError("Authorization header required")
    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer":
        raise AuthError("Invalid authorization format")
    return parts[1]


# FastAPI dependency: verified identity of the caller
def get_identity(authorization: Optional[str] = Header(None)) -> Identity:
    token = parse_bearer(authorization)
    try:
        return verify_token(token, config.get_settings().jwt_secret)
    except AuthError as exc:
        logger.debug("Rejected token: %s", exc.message)
        raise AuthError("Invalid or expired token") from exc


def require_admin(identity: Identity = Depends(get_identity)) -> Identity:
    if identity.role != ROLE_ADMIN:
        raise Forbidden("Admin access required")
    return identity
