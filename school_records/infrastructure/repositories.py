from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from .models import AccountORM, StudentORM
from ..domain.entities import Account, Role
from ..domain.errors import Conflict
from ..application.use_cases.register_account import IAccountRepository


def to_domain(a: AccountORM) -> Account:
    return Account(id=a.id, name=a.name, email=a.email, role=Role(a.role))


class AccountRepository(IAccountRepository):
    def __init__(self, db: Session): self.db = db

    def get_by_email(self, email: str) -> Account | None:
        row = self.db.query(AccountORM).filter(AccountORM.email == email).first()
        return to_domain(row) if row else None

    def create(self, name: str, email: str, password_hash: str, role: Role,
               student_age: int | None = None) -> Account:
        row = AccountORM(name=name, email=email, password_hash=password_hash, role=role.value)
        try:
            self.db.add(row)
            self.db.flush()
            if student_age is not None:
                # у студента сразу появляется карточка, связанная с учётной записью
                self.db.add(StudentORM(name=name, age=student_age, account_id=row.id))
            self.db.commit()
        except IntegrityError:
            # параллельная регистрация с тем же email
            self.db.rollback()
            raise Conflict("User with this email already exists")
        self.db.refresh(row)
        return to_domain(row)
