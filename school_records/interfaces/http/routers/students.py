from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from ....application import dashboards, enrollment, students
from ....domain.entities import Principal
from ....infrastructure.db import get_db
from ....infrastructure.metrics import enrollment_operations_total
from ..authz import require_admin, require_staff, require_student
from ..schemas import (
    ClassOut,
    DeletedResp,
    Pagination,
    StudentCreate,
    StudentOut,
    StudentPage,
    StudentUpdate,
)
from .classes import class_out

router = APIRouter(prefix="/api/students", tags=["students"])


@router.post("", response_model=StudentOut, status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_admin)])
def create_student(payload: StudentCreate, db: Session = Depends(get_db)):
    return students.create_student(db, payload.name, payload.age, payload.class_id)

@router.get("", response_model=StudentPage, dependencies=[Depends(require_staff)])
def list_students(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=students.MAX_PAGE_SIZE),
    class_id: int | None = Query(None, ge=1),
    db: Session = Depends(get_db),
):
    result = students.list_students(db, page=page, limit=limit, class_id=class_id)
    return StudentPage(
        students=[StudentOut.model_validate(s) for s in result["items"]],
        pagination=Pagination(
            current_page=result["current_page"],
            total_pages=result["total_pages"],
            total_students=result["total_students"],
            limit=result["limit"],
        ),
    )

# объявлен до /{student_id}, иначе "me" уйдёт в path-параметр
@router.get("/me/classes", response_model=list[ClassOut])
def my_classes(principal: Principal = Depends(require_student), db: Session = Depends(get_db)):
    return [class_out(row, n) for row, n in dashboards.student_classes(db, principal.account_id)]

@router.get("/{student_id}", response_model=StudentOut, dependencies=[Depends(require_staff)])
def get_student(student_id: int, db: Session = Depends(get_db)):
    return students.get_student(db, student_id)

@router.put("/{student_id}", response_model=StudentOut, dependencies=[Depends(require_admin)])
def update_student(student_id: int, payload: StudentUpdate, db: Session = Depends(get_db)):
    # только явно переданные поля; class_id: null снимает с класса
    return students.update_student(db, student_id, payload.model_dump(exclude_unset=True))

@router.delete("/{student_id}", response_model=DeletedResp, dependencies=[Depends(require_admin)])
def delete_student(student_id: int, db: Session = Depends(get_db)):
    return DeletedResp(id=students.delete_student(db, student_id))

@router.post("/{student_id}/unenroll", response_model=StudentOut, dependencies=[Depends(require_staff)])
def unenroll_student(student_id: int, db: Session = Depends(get_db)):
    try:
        enrollment.unenroll_student(db, student_id)
    except Exception:
        enrollment_operations_total.labels(operation="unenroll", outcome="rejected").inc()
        raise
    enrollment_operations_total.labels(operation="unenroll", outcome="ok").inc()
    return students.get_student(db, student_id)
