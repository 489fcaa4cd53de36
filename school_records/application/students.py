"""Student registry.

Class placement is never written directly here: every assignment goes through
:mod:`enrollment` so the per-section cap is enforced in one place.
"""
import math

import structlog
from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from ..domain.errors import InvalidReference, NotFound
from ..infrastructure.db import transaction
from ..infrastructure.models import Student, utcnow
from . import enrollment

MIN_STUDENT_AGE = 5
MAX_STUDENT_AGE = 25
DEFAULT_STUDENT_AGE = 18
MAX_PAGE_SIZE = 100

logger = structlog.get_logger()


def _check_seat(db: Session, class_id: int):
    # в теле запроса несуществующий класс - это неверная ссылка, а не 404
    try:
        return enrollment.check_student_seat(db, class_id)
    except NotFound:
        raise InvalidReference("Specified class does not exist")


def create_student(
    db: Session,
    name: str,
    age: int,
    class_id: int | None = None,
    account_id: int | None = None,
) -> Student:
    with transaction(db):
        seat = _check_seat(db, class_id) if class_id is not None else None
        row = Student(name=name, age=age, account_id=account_id)
        db.add(row)
        db.flush()
        if seat is not None:
            enrollment.claim_seat(db, row.id, seat)
    logger.info("student_created", student_id=row.id, class_id=class_id)
    return get_student(db, row.id)


def get_student(db: Session, student_id: int) -> Student:
    row = db.execute(
        select(Student)
        .options(selectinload(Student.classroom))
        .where(Student.id == student_id)
    ).scalar_one_or_none()
    if row is None:
        raise NotFound("Student not found")
    return row


def list_students(
    db: Session,
    page: int = 1,
    limit: int = 10,
    class_id: int | None = None,
) -> dict:
    page = max(page, 1)
    limit = max(min(limit, MAX_PAGE_SIZE), 1)

    base = select(Student)
    counter = select(func.count(Student.id))
    if class_id is not None:
        base = base.where(Student.class_id == class_id)
        counter = counter.where(Student.class_id == class_id)

    total = db.scalar(counter) or 0
    items = db.execute(
        base.options(selectinload(Student.classroom))
        .order_by(Student.name, Student.id)
        .limit(limit)
        .offset((page - 1) * limit)
    ).scalars().all()

    return {
        "items": list(items),
        "current_page": page,
        "total_pages": math.ceil(total / limit),
        "total_students": total,
        "limit": limit,
    }


def update_student(db: Session, student_id: int, changes: dict) -> Student:
    """Apply a partial update; keys absent from ``changes`` stay as they are.

    ``class_id`` set to None clears the assignment; a different non-null class is
    capacity-checked, the current class is not.
    """
    with transaction(db):
        row = db.get(Student, student_id)
        if row is None:
            raise NotFound("Student not found")
        if changes.get("name") is not None:
            row.name = changes["name"]
        if changes.get("age") is not None:
            row.age = changes["age"]
        if "class_id" in changes:
            target = changes["class_id"]
            if target is None:
                row.class_id = None
            elif target != row.class_id:
                seat = _check_seat(db, target)
                enrollment.claim_seat(db, student_id, seat)
        row.updated_at = utcnow()
    logger.info("student_updated", student_id=student_id, fields=sorted(changes))
    return get_student(db, student_id)


def delete_student(db: Session, student_id: int) -> int:
    with transaction(db):
        row = db.get(Student, student_id)
        if row is None:
            raise NotFound("Student not found")
        db.delete(row)
    logger.info("student_deleted", student_id=student_id)
    return student_id
