import re
from datetime import datetime, timedelta, timezone

from passlib.context import CryptContext
from jose import jwt, JWTError
from ..config import settings

pwd = CryptContext(
    schemes=["bcrypt_sha256"],
    deprecated="auto",
    bcrypt_sha256__truncate_error=False,
)

ACCESS = "access"
REFRESH = "refresh"

_PASSWORD_RULES = [
    (lambda p: len(p) >= 8, "Password must be at least 8 characters long"),
    (lambda p: re.search(r"[A-Z]", p), "Password must contain at least one uppercase letter"),
    (lambda p: re.search(r"[a-z]", p), "Password must contain at least one lowercase letter"),
    (lambda p: re.search(r"\d", p), "Password must contain at least one number"),
    (lambda p: re.search(r"[!@#$%^&*(),.?\":{}|<>]", p), "Password must contain at least one special character"),
]


class PasswordHasher:
    def hash(self, plain: str) -> str: return pwd.hash(plain)
    def verify(self, plain: str, hashed: str) -> bool: return pwd.verify(plain, hashed)


def password_problems(plain: str) -> list[str]:
    """Все нарушенные правила сложности пароля (пустой список - пароль годится)."""
    return [message for check, message in _PASSWORD_RULES if not check(plain)]


def _secret(kind: str) -> str:
    return settings.REFRESH_SECRET_KEY if kind == REFRESH else settings.SECRET_KEY


def _encode(account_id: int, email: str, role: str, kind: str, minutes: int) -> str:
    exp = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    payload = {"sub": str(account_id), "email": email, "role": role, "type": kind, "exp": exp}
    return jwt.encode(payload, _secret(kind), algorithm=settings.JWT_ALGORITHM)


def create_access_token(account_id: int, email: str, role: str, minutes: int | None = None) -> str:
    return _encode(account_id, email, role, ACCESS, minutes or settings.ACCESS_TOKEN_MINUTES)


def create_refresh_token(account_id: int, email: str, role: str, minutes: int | None = None) -> str:
    return _encode(account_id, email, role, REFRESH, minutes or settings.REFRESH_TOKEN_MINUTES)


def decode_token(token: str, kind: str = ACCESS) -> dict:
    """Возвращает claims токена нужного типа или кидает JWTError."""
    payload = jwt.decode(token, _secret(kind), algorithms=[settings.JWT_ALGORITHM])
    if payload.get("type") != kind:
        raise JWTError("Wrong token type")
    if not payload.get("sub"):
        raise JWTError("No subject")
    return payload
