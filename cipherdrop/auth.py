import uuid
from datetime import timedelta

from jose import JWTError, jwt

from cipherdrop.config import settings
from cipherdrop.errors import AuthenticationError
from cipherdrop.timestamps import utcnow

ALGORITHM = "HS256"


def create_access_token(user_id: uuid.UUID, secret: str | None = None, maxage_minutes: int | None = None) -> str:
    now = utcnow()
    expire = now + timedelta(minutes=maxage_minutes or settings.JWT_MAXAGE_MINUTES)
    claims = {"sub": str(user_id), "iat": now, "exp": expire}
    return jwt.encode(claims, secret or settings.JWT_SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str, secret: str | None = None) -> uuid.UUID:
    """Return the user id carried by ``token``. Raises AuthenticationError otherwise."""
    try:
        payload = jwt.decode(token, secret or settings.JWT_SECRET_KEY, algorithms=[ALGORITHM])
        return uuid.UUID(payload["sub"])
    except (JWTError, KeyError, ValueError) as exc:
        raise AuthenticationError() from exc
