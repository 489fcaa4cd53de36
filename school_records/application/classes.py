"""Class registry: lifecycle and (name, section) uniqueness of class sections."""
import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ..domain.errors import Conflict, NotFound, PreconditionFailed
from ..infrastructure.db import transaction
from ..infrastructure.models import Class, Student, utcnow
from . import enrollment

logger = structlog.get_logger()


def _duplicate(name: str, section: str) -> Conflict:
    return Conflict(f"Class {name} - Section {section} already exists")


def _find_by_name_section(db: Session, name: str, section: str) -> Class | None:
    return db.execute(
        select(Class).where(Class.name == name, Class.section == section)
    ).scalar_one_or_none()


def create_class(db: Session, name: str, section: str, teacher_id: int | None = None) -> Class:
    try:
        with transaction(db):
            if teacher_id is not None:
                enrollment.get_teacher(db, teacher_id)
            if _find_by_name_section(db, name, section) is not None:
                raise _duplicate(name, section)
            # вместимость проверяется только после уникальности пары
            teacher = None
            if teacher_id is not None:
                teacher = enrollment.check_teacher_capacity(db, teacher_id)
            row = Class(name=name, section=section)
            db.add(row)
            db.flush()
            if teacher is not None:
                enrollment.claim_section(db, row.id, teacher)
    except IntegrityError:
        # параллельная вставка той же пары (name, section)
        raise _duplicate(name, section)
    db.refresh(row)
    logger.info("class_created", class_id=row.id, name=name, section=section, teacher_id=teacher_id)
    return row


def list_classes(db: Session, teacher_id: int | None = None) -> list[tuple[Class, int]]:
    """All sections ordered by (name, section), each with its enrolled count."""
    student_count = (
        select(func.count(Student.id))
        .where(Student.class_id == Class.id)
        .correlate(Class)
        .scalar_subquery()
    )
    q = (
        select(Class, student_count.label("student_count"))
        .options(selectinload(Class.teacher))
        .order_by(Class.name, Class.section)
    )
    if teacher_id is not None:
        q = q.where(Class.teacher_id == teacher_id)
    return [(row, count) for row, count in db.execute(q).all()]


def get_class(db: Session, class_id: int) -> Class:
    row = db.get(Class, class_id)
    if row is None:
        raise NotFound("Class not found")
    return row


def get_class_with_students(db: Session, class_id: int) -> tuple[Class, list[Student]]:
    row = get_class(db, class_id)
    students = db.execute(
        select(Student).where(Student.class_id == class_id).order_by(Student.name)
    ).scalars().all()
    return row, list(students)


def update_class(db: Session, class_id: int, name: str | None = None, section: str | None = None) -> Class:
    try:
        with transaction(db):
            row = get_class(db, class_id)
            new_name = name if name is not None else row.name
            new_section = section if section is not None else row.section
            if (new_name, new_section) != (row.name, row.section):
                other = _find_by_name_section(db, new_name, new_section)
                if other is not None and other.id != class_id:
                    raise _duplicate(new_name, new_section)
                row.name = new_name
                row.section = new_section
                row.updated_at = utcnow()
    except IntegrityError:
        raise _duplicate(new_name, new_section)
    db.refresh(row)
    logger.info("class_updated", class_id=class_id)
    return row


def delete_class(db: Session, class_id: int) -> int:
    with transaction(db):
        row = enrollment.lock_class(db, class_id)
        if enrollment.count_students(db, class_id) > 0:
            raise PreconditionFailed(
                "Cannot delete class with enrolled students. "
                "Please move students to another class first."
            )
        db.delete(row)
    logger.info("class_deleted", class_id=class_id)
    return class_id
