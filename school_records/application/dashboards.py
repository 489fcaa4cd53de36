"""Read-only aggregate views for the admin, teacher and student dashboards."""
from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from ..domain.entities import Role
from ..infrastructure.models import Account, Class, Student
from .enrollment import MAX_CLASSES_PER_TEACHER, count_students


def _count(db: Session, q) -> int:
    return db.scalar(q) or 0


def admin_stats(db: Session) -> dict:
    total_students = _count(db, select(func.count(Student.id)))
    enrolled = _count(db, select(func.count(Student.id)).where(Student.class_id.is_not(None)))
    rate = int(enrolled * 100 / total_students + 0.5) if total_students else 0
    return {
        "total_students": total_students,
        "active_classes": _count(db, select(func.count(Class.id))),
        "total_teachers": _count(
            db, select(func.count(Account.id)).where(Account.role == Role.TEACHER.value)
        ),
        "enrollment_rate": rate,
    }


def _teachers(db: Session):
    return db.execute(
        select(Account).where(Account.role == Role.TEACHER.value).order_by(Account.name)
    ).scalars().all()


def teachers_with_details(db: Session) -> list[dict]:
    teachers = db.execute(
        select(Account)
        .where(Account.role == Role.TEACHER.value)
        .options(selectinload(Account.classes).selectinload(Class.students))
        .order_by(Account.name)
    ).scalars().all()
    result = []
    for teacher in teachers:
        classes = sorted(teacher.classes, key=lambda c: (c.name, c.section))
        result.append({
            "id": teacher.id,
            "name": teacher.name,
            "email": teacher.email,
            "created_at": teacher.created_at,
            "section_count": len(classes),
            "max_sections": MAX_CLASSES_PER_TEACHER,
            "classes": [
                {
                    "id": c.id,
                    "name": c.name,
                    "section": c.section,
                    "student_count": len(c.students),
                    "students": [{"id": s.id, "name": s.name, "age": s.age} for s in c.students],
                }
                for c in classes
            ],
        })
    return result


def available_teachers(db: Session) -> list[dict]:
    owned = (
        select(Class.teacher_id, func.count(Class.id).label("n"))
        .where(Class.teacher_id.is_not(None))
        .group_by(Class.teacher_id)
    )
    counts = {teacher_id: n for teacher_id, n in db.execute(owned).all()}
    return [
        {
            "id": t.id,
            "name": t.name,
            "email": t.email,
            "role": t.role,
            "created_at": t.created_at,
            "section_count": counts.get(t.id, 0),
        }
        for t in _teachers(db)
        if counts.get(t.id, 0) < MAX_CLASSES_PER_TEACHER
    ]


def all_accounts(db: Session) -> list[Account]:
    return list(db.execute(select(Account).order_by(Account.role, Account.name)).scalars().all())


def teacher_dashboard(db: Session, teacher_id: int) -> dict:
    total_classes = _count(db, select(func.count(Class.id)).where(Class.teacher_id == teacher_id))
    total_students = _count(
        db,
        select(func.count(Student.id))
        .join(Class, Student.class_id == Class.id)
        .where(Class.teacher_id == teacher_id),
    )
    return {"total_classes": total_classes, "total_students": total_students}


def student_classes(db: Session, account_id: int) -> list[tuple[Class, int]]:
    """Class of the student record linked to ``account_id`` (empty if none)."""
    student = db.execute(
        select(Student).where(Student.account_id == account_id)
    ).scalar_one_or_none()
    if student is None or student.class_id is None:
        return []
    row = db.execute(
        select(Class).options(selectinload(Class.teacher)).where(Class.id == student.class_id)
    ).scalar_one()
    return [(row, count_students(db, row.id))]


__all__ = [
    "admin_stats",
    "teachers_with_details",
    "available_teachers",
    "all_accounts",
    "teacher_dashboard",
    "student_classes",
]
