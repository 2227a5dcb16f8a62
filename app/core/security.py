from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from passlib.context import CryptContext
from jose import JWTError, jwt
from app.core.config import settings

# Create hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class InvalidTokenError(Exception):
    """Raised for missing, malformed, tampered or expired access tokens."""


@dataclass
class TokenClaims:
    id: int
    role: str


def _normalize_password(password: str) -> str:
    # bcrypt only considers the first 72 bytes
    raw = password.encode("utf-8")
    if len(raw) <= 72:
        return password
    return raw[:72].decode("utf-8", errors="ignore")

# ✅ Hash a password
def hash_password(password: str) -> str:
    return pwd_context.hash(_normalize_password(password))

# ✅ Verify a password
def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(_normalize_password(plain_password), hashed_password)
    except ValueError:
        # stored value is not a recognised hash
        return False

# ✅ Create JWT access token carrying the user's id and role
def create_access_token(user_id: int, role: str, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {"id": user_id, "role": role, "exp": expire}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

# ✅ Verify a JWT and return its claims
def decode_access_token(token: Optional[str]) -> TokenClaims:
    if not token:
        raise InvalidTokenError("Token missing")
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        raise InvalidTokenError(str(e)) from e

    user_id = payload.get("id")
    role = payload.get("role")
    if not isinstance(user_id, int) or not role:
        raise InvalidTokenError("Token claims incomplete")
    return TokenClaims(id=user_id, role=role)
