from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


@dataclass(frozen=True)
class Account:
    id: int | None
    name: str
    email: str
    role: Role = Role.STUDENT


@dataclass(frozen=True)
class Principal:
    """Кто вызывает API: id учётной записи и её роль (из access-токена)."""
    account_id: int
    role: Role
    email: str | None = None
