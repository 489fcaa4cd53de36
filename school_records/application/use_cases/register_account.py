from ...domain.entities import Account, Role
from ...domain.errors import Conflict, ValidationFailed
from ..dto import RegisterAccountInput


class IAccountRepository:
    def get_by_email(self, email: str) -> Account | None: ...
    def create(self, name: str, email: str, password_hash: str, role: Role,
               student_age: int | None = None) -> Account: ...


class IPasswordHasher:
    def hash(self, plain: str) -> str: ...


class RegisterAccount:
    def __init__(self, repo: IAccountRepository, hasher: IPasswordHasher,
                 password_check=None, student_age: int = 18):
        self.repo = repo
        self.hasher = hasher
        self.password_check = password_check
        self.student_age = student_age

    def execute(self, data: RegisterAccountInput) -> Account:
        if self.password_check is not None:
            problems = self.password_check(data.password)
            if problems:
                raise ValidationFailed(
                    "Password validation failed",
                    [{"field": "password", "message": p} for p in problems],
                )
        if self.repo.get_by_email(data.email):
            raise Conflict("User with this email already exists")
        pwd_hash = self.hasher.hash(data.password)
        student_age = self.student_age if data.role == Role.STUDENT else None
        return self.repo.create(data.name, data.email, pwd_hash, data.role, student_age)
