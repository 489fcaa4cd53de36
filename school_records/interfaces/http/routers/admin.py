from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from ....application import dashboards
from ....infrastructure.db import get_db
from ..authz import require_admin
from ..schemas import AccountDetails, AdminStats, AvailableTeacher, TeacherDetails

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/stats", response_model=AdminStats)
def stats(db: Session = Depends(get_db)):
    return dashboards.admin_stats(db)

@router.get("/teachers", response_model=list[TeacherDetails])
def teachers(db: Session = Depends(get_db)):
    return dashboards.teachers_with_details(db)

@router.get("/teachers/available", response_model=list[AvailableTeacher])
def available_teachers(db: Session = Depends(get_db)):
    return dashboards.available_teachers(db)

@router.get("/users", response_model=list[AccountDetails])
def users(db: Session = Depends(get_db)):
    return dashboards.all_accounts(db)
