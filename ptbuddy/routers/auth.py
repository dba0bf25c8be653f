from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ptbuddy import schemas
from ptbuddy.audit import log_event
from ptbuddy.database import get_db
from ptbuddy.login_guard import login_guard
from ptbuddy.models import Member, Trainer, utcnow
from ptbuddy.security import (
    hash_password,
    is_valid_phone,
    validate_password_policy,
    verify_password,
)
from ptbuddy.sessions import SessionUser, client_ip, end_session, get_current_user, start_session

router = APIRouter(prefix="/auth", tags=["Authentication"])


def find_account(db: Session, email: str, role: str) -> Trainer | Member | None:
    if role in {"trainer", "admin"}:
        return db.query(Trainer).filter(Trainer.email == email).first()
    return db.query(Member).filter(Member.email == email).first()


def _email_taken(db: Session, email: str) -> bool:
    trainer = db.query(Trainer.id).filter(Trainer.email == email).first()
    member = db.query(Member.id).filter(Member.email == email).first()
    return bool(trainer or member)


@router.post("/signup", response_model=schemas.AuthResponse, status_code=201)
def signup(
    request: Request,
    payload: schemas.SignupRequest,
    db: Session = Depends(get_db),
):
    if payload.password != payload.confirm_password:
        raise HTTPException(status_code=400, detail="Passwords do not match")
    password_ok, password_error = validate_password_policy(payload.password)
    if not password_ok:
        raise HTTPException(status_code=400, detail=password_error)
    if not is_valid_phone(payload.phone):
        raise HTTPException(
            status_code=400,
            detail="Invalid phone number format (e.g. 010-1234-5678)",
        )
    if _email_taken(db, payload.email):
        raise HTTPException(status_code=400, detail="Email already in use")

    if payload.role == "trainer":
        account = Trainer(
            email=payload.email,
            password=hash_password(payload.password),
            name=payload.name,
            phone=payload.phone,
            role="trainer",
        )
    else:
        account = Member(
            email=payload.email,
            password=hash_password(payload.password),
            name=payload.name,
            phone=payload.phone,
        )

    db.add(account)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Email already in use")
    db.refresh(account)

    start_session(request, user_id=account.id, email=account.email, role=payload.role, name=account.name)
    log_event(db, "SIGNUP", request=request, actor=account, role=payload.role)
    return {
        "message": "Signup completed",
        "user": {"id": account.id, "email": account.email, "name": account.name, "role": payload.role},
    }


@router.post("/login", response_model=schemas.AuthResponse)
def login(
    request: Request,
    payload: schemas.LoginRequest,
    db: Session = Depends(get_db),
):
    ip = client_ip(request)
    allowed, retry_after = login_guard.check(payload.email, payload.role, ip)
    if not allowed:
        log_event(db, "LOGIN_BLOCKED", request=request, role=payload.role, email=payload.email)
        raise HTTPException(
            status_code=429,
            detail=f"Too many failed attempts. Try again in {retry_after} seconds",
        )

    account = find_account(db, payload.email, payload.role)
    if isinstance(account, Member) and not account.password:
        raise HTTPException(
            status_code=401,
            detail="No password has been set for this member. Please ask your trainer.",
        )

    # Account state is only disclosed to callers holding the password.
    if account is None or not verify_password(payload.password, account.password):
        still_open, lockout_for = login_guard.register_failure(payload.email, payload.role, ip)
        if not still_open:
            log_event(db, "LOGIN_LOCKOUT", request=request, role=payload.role, email=payload.email)
            raise HTTPException(
                status_code=429,
                detail=f"Too many failed attempts. Try again in {lockout_for} seconds",
            )
        log_event(db, "LOGIN_FAILED", request=request, role=payload.role, email=payload.email)
        raise HTTPException(status_code=401, detail="Invalid email or password")

    trainer_name = None
    if isinstance(account, Trainer):
        if payload.role == "admin" and account.role != "admin":
            raise HTTPException(status_code=403, detail="Administrator privileges required")
        if payload.role == "trainer" and account.role == "admin":
            raise HTTPException(status_code=403, detail="Administrator accounts must use the admin login")
    else:
        trainer_name = account.trainer.name if account.trainer else None
    if not account.is_active or account.deleted_at is not None:
        raise HTTPException(status_code=403, detail="This account has been deactivated or deleted")

    login_guard.register_success(payload.email, payload.role, ip)
    role = account.role if isinstance(account, Trainer) else "member"
    start_session(request, user_id=account.id, email=account.email, role=role, name=account.name)
    log_event(db, "LOGIN_SUCCESS", request=request, actor=account, role=role)
    return {
        "message": "Login successful",
        "user": {
            "id": account.id,
            "email": account.email,
            "name": account.name,
            "role": role,
            "trainer_name": trainer_name,
        },
    }


@router.post("/logout", response_model=schemas.AuthMessage)
def logout(request: Request):
    end_session(request)
    return {"message": "Logged out"}


@router.get("/me", response_model=schemas.UserOut)
def me(user: SessionUser = Depends(get_current_user)):
    return {"id": user.id, "email": user.email, "name": user.name, "role": user.role}


@router.post("/check-email", response_model=schemas.CheckEmailResponse)
def check_email(payload: schemas.CheckEmailRequest, db: Session = Depends(get_db)):
    if find_account(db, payload.email, payload.role) is not None:
        return {"available": False, "message": "Email already in use"}
    return {"available": True, "message": "Email is available"}


@router.post("/delete-account", response_model=schemas.AuthMessage)
def delete_account(
    request: Request,
    payload: schemas.DeleteAccountRequest,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    model = Member if user.role == "member" else Trainer
    account = db.query(model).filter(model.id == user.id).first()
    if account is None:
        raise HTTPException(status_code=404, detail="Account not found")
    if not verify_password(payload.password, account.password):
        raise HTTPException(status_code=400, detail="Incorrect password")

    account.is_active = False
    account.deleted_at = utcnow()
    db.commit()
    end_session(request)
    log_event(db, "ACCOUNT_DELETED", request=request, actor=user)
    return {"message": "Your account has been deleted"}
