from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt

from podsearch.core.config import configs


def create_access_token(
    user_id: str,
    email: str,
    role: str,
    expires_delta: Optional[timedelta] = None,
    secret_key: Optional[str] = None,
) -> str:
    """Sign a bearer token carrying the user's id, email and role."""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=configs.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    payload = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "exp": expire,
    }
    return jwt.encode(payload, secret_key or configs.SECRET_KEY, algorithm=configs.JWT_ALGORITHM)


def decode_token(token: str, secret_key: Optional[str] = None) -> Dict[str, Any]:
    """Raises jose.JWTError on a bad signature or an expired token."""
    return jwt.decode(token, secret_key or configs.SECRET_KEY, algorithms=[configs.JWT_ALGORITHM])
