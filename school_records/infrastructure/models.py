# school_records/infrastructure/models.py
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import String, Integer, ForeignKey, UniqueConstraint, TIMESTAMP, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        default=utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        default=utcnow,
        nullable=False,
    )


class AccountORM(TimestampMixin, Base):
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(16), nullable=False, index=True)

    classes: Mapped[list["ClassORM"]] = relationship("ClassORM", back_populates="teacher")

    def __repr__(self) -> str:
        return f"AccountORM(id={self.id!r}, email={self.email!r}, role={self.role!r})"


class ClassORM(TimestampMixin, Base):
    __tablename__ = "classes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    section: Mapped[str] = mapped_column(String(10), nullable=False)
    teacher_id: Mapped[int | None] = mapped_column(
        ForeignKey("accounts.id"),
        nullable=True,
        index=True,
    )

    teacher: Mapped["AccountORM | None"] = relationship("AccountORM", back_populates="classes")
    students: Mapped[list["StudentORM"]] = relationship(
        "StudentORM",
        back_populates="classroom",
        order_by="StudentORM.name",
    )

    __table_args__ = (UniqueConstraint("name", "section", name="uq_class_name_section"),)

    def __repr__(self) -> str:
        return f"ClassORM(id={self.id!r}, name={self.name!r}, section={self.section!r})"


class StudentORM(TimestampMixin, Base):
    __tablename__ = "students"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    class_id: Mapped[int | None] = mapped_column(
        ForeignKey("classes.id"),
        nullable=True,
        index=True,
    )
    # связь с учётной записью роли student (может отсутствовать)
    account_id: Mapped[int | None] = mapped_column(
        ForeignKey("accounts.id"),
        nullable=True,
        unique=True,
    )

    classroom: Mapped["ClassORM | None"] = relationship("ClassORM", back_populates="students")

    def __repr__(self) -> str:
        return f"StudentORM(id={self.id!r}, name={self.name!r}, class_id={self.class_id!r})"


Account = AccountORM
Class = ClassORM
Student = StudentORM

__all__ = [
    "Base",
    "AccountORM",
    "ClassORM",
    "StudentORM",
    "Account",
    "Class",
    "Student",
    "utcnow",
]
