from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from ....application import classes, enrollment
from ....infrastructure.db import get_db
from ....infrastructure.metrics import enrollment_operations_total
from ....infrastructure.models import Class
from ..authz import require_admin, require_staff
from ..schemas import (
    ClassCreate,
    ClassOut,
    ClassStudent,
    ClassUpdate,
    ClassWithStudents,
    DeletedResp,
    EnrollmentOut,
    EnrollReq,
    TeacherAssign,
)

router = APIRouter(prefix="/api/classes", tags=["classes"])


def class_out(row: Class, student_count: int) -> ClassOut:
    out = ClassOut.model_validate(row)
    out.student_count = student_count
    return out


def _tracked(operation: str, func, *args):
    try:
        result = func(*args)
    except Exception:
        enrollment_operations_total.labels(operation=operation, outcome="rejected").inc()
        raise
    enrollment_operations_total.labels(operation=operation, outcome="ok").inc()
    return result


@router.post("", response_model=ClassOut, status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_admin)])
def create_class(payload: ClassCreate, db: Session = Depends(get_db)):
    row = classes.create_class(db, payload.name, payload.section, payload.teacher_id)
    return class_out(row, 0)

@router.get("", response_model=list[ClassOut], dependencies=[Depends(require_staff)])
def list_classes(teacher_id: int | None = Query(None, ge=1), db: Session = Depends(get_db)):
    return [class_out(row, n) for row, n in classes.list_classes(db, teacher_id)]

@router.get("/{class_id}", response_model=ClassOut, dependencies=[Depends(require_staff)])
def get_class(class_id: int, db: Session = Depends(get_db)):
    row = classes.get_class(db, class_id)
    return class_out(row, enrollment.count_students(db, class_id))

@router.get("/{class_id}/students", response_model=ClassWithStudents, dependencies=[Depends(require_staff)])
def class_students(class_id: int, db: Session = Depends(get_db)):
    row, students = classes.get_class_with_students(db, class_id)
    return ClassWithStudents(
        class_=class_out(row, len(students)),
        students=[ClassStudent.model_validate(s) for s in students],
        total_students=len(students),
    )

@router.put("/{class_id}", response_model=ClassOut, dependencies=[Depends(require_admin)])
def update_class(class_id: int, payload: ClassUpdate, db: Session = Depends(get_db)):
    row = classes.update_class(db, class_id, payload.name, payload.section)
    return class_out(row, enrollment.count_students(db, class_id))

@router.delete("/{class_id}", response_model=DeletedResp, dependencies=[Depends(require_admin)])
def delete_class(class_id: int, db: Session = Depends(get_db)):
    return DeletedResp(id=classes.delete_class(db, class_id))

# --- Enrollment & teachers:

@router.post("/{class_id}/enroll", response_model=EnrollmentOut, dependencies=[Depends(require_staff)])
def enroll_student(class_id: int, payload: EnrollReq, db: Session = Depends(get_db)):
    _tracked("enroll", enrollment.enroll_student, db, class_id, payload.student_id)
    return EnrollmentOut(class_id=class_id, student_id=payload.student_id)

@router.put("/{class_id}/teacher", response_model=ClassOut, dependencies=[Depends(require_admin)])
def assign_teacher(class_id: int, payload: TeacherAssign, db: Session = Depends(get_db)):
    row = _tracked("assign_teacher", enrollment.assign_teacher, db, class_id, payload.teacher_id)
    return class_out(row, enrollment.count_students(db, class_id))

@router.delete("/{class_id}/teacher", response_model=ClassOut, dependencies=[Depends(require_admin)])
def remove_teacher(class_id: int, db: Session = Depends(get_db)):
    row = _tracked("remove_teacher", enrollment.remove_teacher, db, class_id)
    return class_out(row, enrollment.count_students(db, class_id))
