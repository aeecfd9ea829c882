from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import jwt, JWTError

from pharmapos.core.config import settings


@dataclass(frozen=True)
class TokenClaims:
    """Who is calling and on behalf of which pharmacy."""

    user_id: int
    pharmacy_id: int
    role: str


def create_access_token(user, expires_delta: timedelta | None = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )

    return jwt.encode(
        {
            "sub": str(user.id),
            "pharmacy_id": user.pharmacy_id,
            "role": user.role,
            "exp": expire,
            "type": "access",
        },
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
    )


def decode_access_token(token: str) -> TokenClaims | None:
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
        )
    except JWTError:
        return None

    if payload.get("type") != "access":
        return None

    try:
        return TokenClaims(
            user_id=int(payload["sub"]),
            pharmacy_id=int(payload["pharmacy_id"]),
            role=str(payload["role"]),
        )
    except (KeyError, TypeError, ValueError):
        return None
