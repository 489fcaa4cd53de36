from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field

from ...application.students import MAX_STUDENT_AGE, MIN_STUDENT_AGE

# --- Auth

class RegisterReq(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str
    role: Literal["admin", "teacher", "student"]

class LoginReq(BaseModel):
    email: EmailStr
    password: str

class RefreshReq(BaseModel):
    refresh_token: str = Field(min_length=1)

class AccountOut(BaseModel):
    id: int
    name: str
    email: EmailStr
    role: str
    class Config: from_attributes = True

class AccountDetails(AccountOut):
    created_at: datetime

class TokenResp(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"

# --- Classes

class TeacherSummary(BaseModel):
    id: int
    name: str
    email: str
    class Config: from_attributes = True

class ClassCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    section: str = Field(min_length=1, max_length=10)
    teacher_id: int | None = Field(default=None, ge=1)

class ClassUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    section: str | None = Field(default=None, min_length=1, max_length=10)

class TeacherAssign(BaseModel):
    teacher_id: int = Field(ge=1)

class EnrollReq(BaseModel):
    student_id: int = Field(ge=1)

class EnrollmentOut(BaseModel):
    class_id: int
    student_id: int

class ClassOut(BaseModel):
    id: int
    name: str
    section: str
    teacher_id: int | None = None
    teacher: TeacherSummary | None = None
    student_count: int = 0
    created_at: datetime
    updated_at: datetime
    class Config: from_attributes = True

class ClassStudent(BaseModel):
    id: int
    name: str
    age: int
    class Config: from_attributes = True

class ClassWithStudents(BaseModel):
    class_: ClassOut = Field(alias="class")
    students: list[ClassStudent]
    total_students: int
    class Config: populate_by_name = True

# --- Students

class ClassSummary(BaseModel):
    id: int
    name: str
    section: str
    class Config: from_attributes = True

class StudentCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    age: int = Field(ge=MIN_STUDENT_AGE, le=MAX_STUDENT_AGE)
    class_id: int | None = Field(default=None, ge=1)

class StudentUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    age: int | None = Field(default=None, ge=MIN_STUDENT_AGE, le=MAX_STUDENT_AGE)
    class_id: int | None = Field(default=None, ge=1)

class StudentOut(BaseModel):
    id: int
    name: str
    age: int
    class_id: int | None = None
    account_id: int | None = None
    classroom: ClassSummary | None = None
    created_at: datetime
    updated_at: datetime
    class Config: from_attributes = True

class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total_students: int
    limit: int

class StudentPage(BaseModel):
    students: list[StudentOut]
    pagination: Pagination

class DeletedResp(BaseModel):
    id: int

# --- Dashboards

class AdminStats(BaseModel):
    total_students: int
    active_classes: int
    total_teachers: int
    enrollment_rate: int

class TeacherClassDetails(BaseModel):
    id: int
    name: str
    section: str
    student_count: int
    students: list[ClassStudent]

class TeacherDetails(BaseModel):
    id: int
    name: str
    email: str
    created_at: datetime
    section_count: int
    max_sections: int
    classes: list[TeacherClassDetails]

class AvailableTeacher(AccountDetails):
    section_count: int

class TeacherDashboard(BaseModel):
    total_classes: int
    total_students: int
