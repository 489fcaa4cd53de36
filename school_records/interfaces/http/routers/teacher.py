from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from ....application import classes, dashboards
from ....domain.entities import Principal
from ....infrastructure.db import get_db
from ..authz import require_teacher
from ..schemas import ClassOut, TeacherDashboard
from .classes import class_out

router = APIRouter(prefix="/api/teacher", tags=["teacher"])


@router.get("/dashboard", response_model=TeacherDashboard)
def dashboard(principal: Principal = Depends(require_teacher), db: Session = Depends(get_db)):
    return dashboards.teacher_dashboard(db, principal.account_id)

@router.get("/classes", response_model=list[ClassOut])
def my_classes(principal: Principal = Depends(require_teacher), db: Session = Depends(get_db)):
    """Классы текущего преподавателя с числом учеников."""
    return [class_out(row, n) for row, n in classes.list_classes(db, principal.account_id)]
