from fastapi import APIRouter, Depends, HTTPException, status, Request
from jose import JWTError
from sqlalchemy.orm import Session

from ....application.dto import RegisterAccountInput
from ....application.students import DEFAULT_STUDENT_AGE
from ....application.use_cases.register_account import RegisterAccount
from ....domain.entities import Principal, Role
from ....infrastructure.db import get_db
from ....infrastructure.models import AccountORM
from ....infrastructure.rate_limit import limiter
from ....infrastructure.repositories import AccountRepository
from ....infrastructure.security import (
    REFRESH,
    PasswordHasher,
    create_access_token,
    create_refresh_token,
    decode_token,
    password_problems,
)
from ....config import settings
from ..authz import get_principal
from ..schemas import AccountOut, LoginReq, RefreshReq, RegisterReq, TokenResp

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _tokens(row: AccountORM) -> TokenResp:
    return TokenResp(
        access_token=create_access_token(row.id, row.email, row.role),
        refresh_token=create_refresh_token(row.id, row.email, row.role),
    )


@router.post("/register", response_model=AccountOut, status_code=status.HTTP_201_CREATED)
@limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
def register(
    request: Request,
    payload: RegisterReq,
    db: Session = Depends(get_db),
):
    uc = RegisterAccount(
        repo=AccountRepository(db),
        hasher=PasswordHasher(),
        password_check=password_problems,
        student_age=DEFAULT_STUDENT_AGE,
    )
    account = uc.execute(RegisterAccountInput(
        name=payload.name, email=payload.email, password=payload.password, role=Role(payload.role),
    ))
    return AccountOut(id=account.id, name=account.name, email=account.email, role=account.role.value)


@router.post("/login", response_model=TokenResp)
# Более строгий лимит для логина (защита от брутфорса)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
def login(
    request: Request,
    payload: LoginReq,
    db: Session = Depends(get_db),
):
    row = db.query(AccountORM).filter(AccountORM.email == payload.email).first()
    if not row or not PasswordHasher().verify(payload.password, row.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return _tokens(row)


@router.post("/refresh", response_model=TokenResp)
def refresh(payload: RefreshReq, db: Session = Depends(get_db)):
    try:
        claims = decode_token(payload.refresh_token, kind=REFRESH)
        account_id = int(claims["sub"])
    except (JWTError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid refresh token")
    row = db.get(AccountORM, account_id)
    if not row:
        raise HTTPException(status_code=401, detail="User no longer exists")
    return _tokens(row)


@router.get("/me", response_model=AccountOut)
def me(
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
):
    row = db.get(AccountORM, principal.account_id)
    if not row:
        raise HTTPException(status_code=401, detail="User not found")
    return row
