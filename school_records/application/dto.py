from dataclasses import dataclass

from ..domain.entities import Role


@dataclass
class RegisterAccountInput:
    name: str
    email: str
    password: str
    role: Role
