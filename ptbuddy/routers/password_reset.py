"""Email verification-code password reset.

A token moves from unverified to verified to deleted, or is deleted on
expiry. Each write sequence runs in a single transaction.
"""

import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ptbuddy import schemas
from ptbuddy.audit import format_details, log_event
from ptbuddy.database import get_db
from ptbuddy.emailer import send_reset_code_email
from ptbuddy.models import PasswordResetToken
from ptbuddy.routers.auth import find_account
from ptbuddy.security import generate_verification_code, hash_password, validate_password_policy
from ptbuddy.settings import get_settings

router = APIRouter(prefix="/auth/reset-password", tags=["Password reset"])
settings = get_settings()
logger = logging.getLogger("ptbuddy.password_reset")


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _latest_token(db: Session, email: str, role: str, code: str, verified: bool):
    return (
        db.query(PasswordResetToken)
        .filter(
            PasswordResetToken.email == email,
            PasswordResetToken.role == role,
            PasswordResetToken.code == code,
            PasswordResetToken.verified.is_(verified),
        )
        .order_by(PasswordResetToken.created_at.desc(), PasswordResetToken.id.desc())
        .first()
    )


@router.post("/request", response_model=schemas.ResetCodeResponse)
def request_reset_code(
    request: Request,
    payload: schemas.ResetCodeRequest,
    db: Session = Depends(get_db),
):
    account = find_account(db, payload.email, payload.role)
    if account is None or account.deleted_at is not None:
        raise HTTPException(status_code=404, detail="No account is registered with this email")

    code = generate_verification_code()
    try:
        db.query(PasswordResetToken).filter(
            PasswordResetToken.email == payload.email,
            PasswordResetToken.role == payload.role,
            PasswordResetToken.verified.is_(False),
        ).delete(synchronize_session=False)
        db.add(
            PasswordResetToken(
                email=payload.email,
                role=payload.role,
                code=code,
                expires_at=datetime.now(timezone.utc)
                + timedelta(minutes=settings.reset_code_ttl_minutes),
            )
        )
        db.flush()
        send_reset_code_email(payload.email, code, account.name)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to store reset code email=%s role=%s", payload.email, payload.role)
        raise HTTPException(status_code=500, detail="Server error. Please try again later.")
    except Exception as exc:
        db.rollback()
        logger.exception("Failed to send reset code email=%s: %s", payload.email, exc)
        log_event(
            db,
            "PASSWORD_RESET_SEND_FAILED",
            request=request,
            actor=account,
            role=payload.role,
        )
        raise HTTPException(
            status_code=500,
            detail="Could not send the verification email. Please try again later.",
        )

    log_event(
        db,
        "PASSWORD_RESET_REQUESTED",
        request=request,
        actor=account,
        role=payload.role,
    )
    return {
        "message": "A verification code has been sent to your email.",
        "email": payload.email,
        "code": code if settings.expose_reset_code_in_response else None,
    }


@router.post("/verify", response_model=schemas.ResetVerifyResponse)
def verify_reset_code(
    request: Request,
    payload: schemas.ResetVerifyRequest,
    db: Session = Depends(get_db),
):
    token = _latest_token(db, payload.email, payload.role, payload.code, verified=False)
    if token is None:
        raise HTTPException(status_code=400, detail="Invalid or already used verification code")

    if _as_utc(token.expires_at) < datetime.now(timezone.utc):
        db.delete(token)
        db.commit()
        raise HTTPException(
            status_code=400,
            detail="The verification code has expired. Please request a new one.",
        )

    token.verified = True
    db.commit()
    log_event(
        db,
        "PASSWORD_RESET_VERIFIED",
        request=request,
        role=payload.role,
        email=payload.email,
        details=format_details(token_id=token.id),
    )
    return {"message": "Verification completed", "verified": True, "token_id": token.id}


@router.post("/update", response_model=schemas.ResetUpdateResponse)
def update_password(
    request: Request,
    payload: schemas.ResetUpdateRequest,
    db: Session = Depends(get_db),
):
    password_ok, password_error = validate_password_policy(payload.new_password)
    if not password_ok:
        raise HTTPException(status_code=400, detail=password_error)

    token = _latest_token(db, payload.email, payload.role, payload.code, verified=True)
    if token is None:
        raise HTTPException(
            status_code=400,
            detail="Invalid request. Please start the reset process again.",
        )

    usable_until = _as_utc(token.expires_at) + timedelta(minutes=settings.reset_verified_grace_minutes)
    if datetime.now(timezone.utc) > usable_until:
        db.delete(token)
        db.commit()
        raise HTTPException(
            status_code=400,
            detail="Verification has expired. Please start the reset process again.",
        )

    account = find_account(db, payload.email, payload.role)
    if account is None or account.deleted_at is not None:
        raise HTTPException(
            status_code=400,
            detail="Invalid request. Please start the reset process again.",
        )

    try:
        account.password = hash_password(payload.new_password)
        db.query(PasswordResetToken).filter(
            PasswordResetToken.email == payload.email,
            PasswordResetToken.role == payload.role,
        ).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Password update failed email=%s role=%s", payload.email, payload.role)
        raise HTTPException(status_code=500, detail="Failed to reset password")

    log_event(
        db,
        "PASSWORD_RESET_COMPLETED",
        request=request,
        actor=account,
        role=payload.role,
    )
    return {"message": "Your password has been changed.", "success": True}
