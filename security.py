"""Session tokens and password hashing.

Tokens are HS256 JWTs carrying the user id and role. They are not tracked
server side, so a token stays valid for its whole lifetime even if the user's
role or password changes later.
"""
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import NamedTuple, Optional, Tuple

import bcrypt
import jwt

from config import TOKEN_TTL_HOURS
from errors import TokenExpired, TokenInvalid
from schemas import MAX_PASSWORD_BYTES

ALGORITHM = "HS256"


class Identity(NamedTuple):
    user_id: str
    role: str


def issue_token(user_id: str, role: str, secret: str,
                now: Optional[datetime] = None) -> Tuple[str, datetime]:
    now = now or datetime.now(timezone.utc)
    expires_at = now + timedelta(hours=TOKEN_TTL_HOURS)
    claims = {"userId": user_id, "role": role, "exp": expires_at}
    return jwt.encode(claims, secret, algorithm=ALGORITHM), expires_at


def verify_token(token: str, secret: str) -> Identity:
    try:
        claims = jwt.decode(
            token, secret, algorithms=[ALGORITHM], options={"require": ["exp"]}
        )
    except jwt.ExpiredSignatureError as exc:
        raise TokenExpired() from exc
    except jwt.InvalidTokenError as exc:
        raise TokenInvalid() from exc

    user_id = claims.get("userId")
    role = claims.get("role")
    if not isinstance(user_id, str) or not isinstance(role, str):
        raise TokenInvalid()
    return Identity(user_id=user_id, role=role)


# ---------------- passwords ----------------

def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    raw = password.encode("utf-8")
    if len(raw) > MAX_PASSWORD_BYTES:
        return False
    return bcrypt.checkpw(raw, hashed.encode("utf-8"))


@lru_cache()
def _dummy_hash() -> str:
    return hash_password("not-a-real-password")


def check_password_dummy(password: str) -> bool:
    # Same bcrypt cost as a real check, for emails that do not exist
    verify_password(password, _dummy_hash())
    return False
