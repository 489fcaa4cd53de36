"""
Enrollment & capacity rules.

The only place that moves a student between classes or a class between teachers.
Each seat (or section) claim is a single conditional UPDATE that re-counts the
occupants inside the statement, and the target class row is locked first where the
backend supports SELECT ... FOR UPDATE, so two concurrent claims for the last seat
cannot both succeed.
"""
import structlog
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, aliased

from ..domain.entities import Role
from ..domain.errors import (
    CapacityExceeded,
    Conflict,
    InvalidReference,
    NotFound,
    PreconditionFailed,
)
from ..infrastructure.db import transaction
from ..infrastructure.models import Account, Class, Student, utcnow

MAX_STUDENTS_PER_CLASS = 5
MAX_CLASSES_PER_TEACHER = 5

logger = structlog.get_logger()


def count_students(db: Session, class_id: int) -> int:
    return db.scalar(select(func.count(Student.id)).where(Student.class_id == class_id)) or 0


def count_classes(db: Session, teacher_id: int) -> int:
    return db.scalar(select(func.count(Class.id)).where(Class.teacher_id == teacher_id)) or 0


def _class_full(row: Class) -> CapacityExceeded:
    return CapacityExceeded(
        f'Class section "{row.name} - {row.section}" is full. '
        f"Maximum {MAX_STUDENTS_PER_CLASS} students allowed per section."
    )


def _teacher_full(teacher: Account) -> CapacityExceeded:
    return CapacityExceeded(
        f"Teacher {teacher.name} already has {MAX_CLASSES_PER_TEACHER} sections assigned"
    )


def lock_class(db: Session, class_id: int) -> Class:
    row = db.execute(
        select(Class).where(Class.id == class_id).with_for_update()
    ).scalar_one_or_none()
    if row is None:
        raise NotFound("Class not found")
    return row


def check_student_seat(db: Session, class_id: int) -> Class:
    """Check that ``class_id`` exists and still has a free seat.

    Does not write anything; the caller places the student right after via
    :func:`claim_seat` inside the same transaction.
    """
    row = lock_class(db, class_id)
    if count_students(db, class_id) >= MAX_STUDENTS_PER_CLASS:
        logger.info("class_full", class_id=class_id)
        raise _class_full(row)
    return row


def claim_seat(db: Session, student_id: int, row: Class) -> None:
    seated = aliased(Student)
    taken = (
        select(func.count(seated.id))
        .where(seated.class_id == row.id)
        .scalar_subquery()
    )
    result = db.execute(
        update(Student)
        .where(Student.id == student_id, taken < MAX_STUDENTS_PER_CLASS)
        .values(class_id=row.id, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        # кто-то занял последнее место между проверкой и записью
        logger.info("seat_claim_lost", class_id=row.id, student_id=student_id)
        raise _class_full(row)


def get_teacher(db: Session, teacher_id: int) -> Account:
    teacher = db.get(Account, teacher_id)
    if teacher is None or teacher.role != Role.TEACHER.value:
        raise InvalidReference("Specified teacher does not exist or is not a teacher")
    return teacher


def check_teacher_capacity(db: Session, teacher_id: int) -> Account:
    teacher = get_teacher(db, teacher_id)
    if count_classes(db, teacher_id) >= MAX_CLASSES_PER_TEACHER:
        logger.info("teacher_full", teacher_id=teacher_id)
        raise _teacher_full(teacher)
    return teacher


def claim_section(db: Session, class_id: int, teacher: Account) -> None:
    owned = aliased(Class)
    taken = (
        select(func.count(owned.id))
        .where(owned.teacher_id == teacher.id)
        .scalar_subquery()
    )
    result = db.execute(
        update(Class)
        .where(Class.id == class_id, taken < MAX_CLASSES_PER_TEACHER)
        .values(teacher_id=teacher.id, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.info("section_claim_lost", class_id=class_id, teacher_id=teacher.id)
        raise _teacher_full(teacher)


def enroll_student(db: Session, class_id: int, student_id: int) -> Student:
    with transaction(db):
        row = lock_class(db, class_id)
        student = db.get(Student, student_id)
        if student is None:
            raise NotFound("Student not found")
        if student.class_id == class_id:
            raise Conflict("Student is already enrolled in this class")
        if count_students(db, class_id) >= MAX_STUDENTS_PER_CLASS:
            logger.info("class_full", class_id=class_id)
            raise _class_full(row)
        claim_seat(db, student_id, row)
    db.refresh(student)
    logger.info("student_enrolled", class_id=class_id, student_id=student_id)
    return student


def unenroll_student(db: Session, student_id: int) -> Student:
    with transaction(db):
        student = db.get(Student, student_id)
        if student is None:
            raise NotFound("Student not found")
        if student.class_id is None:
            raise PreconditionFailed("Student is not enrolled in any class")
        previous = student.class_id
        student.class_id = None
        student.updated_at = utcnow()
    db.refresh(student)
    logger.info("student_unenrolled", class_id=previous, student_id=student_id)
    return student


def assign_teacher(db: Session, class_id: int, teacher_id: int) -> Class:
    with transaction(db):
        row = lock_class(db, class_id)
        # повторное назначение того же преподавателя ничего не меняет
        if row.teacher_id != teacher_id:
            teacher = check_teacher_capacity(db, teacher_id)
            claim_section(db, class_id, teacher)
    db.refresh(row)
    logger.info("teacher_assigned", class_id=class_id, teacher_id=teacher_id)
    return row


def remove_teacher(db: Session, class_id: int) -> Class:
    with transaction(db):
        row = lock_class(db, class_id)
        previous = row.teacher_id
        if previous is not None:
            row.teacher_id = None
            row.updated_at = utcnow()
    db.refresh(row)
    logger.info("teacher_removed", class_id=class_id, teacher_id=previous)
    return row
