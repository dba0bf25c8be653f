import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ptbuddy import schemas
from ptbuddy.audit import format_details, log_event
from ptbuddy.database import get_db
from ptbuddy.models import Member, utcnow
from ptbuddy.security import generate_temporary_password, hash_password
from ptbuddy.sessions import TRAINER_ROLES, SessionUser, require_trainer

router = APIRouter(prefix="/members", tags=["Members"])
logger = logging.getLogger("ptbuddy.members")


def get_owned_member(db: Session, member_id: int, trainer_id: int) -> Member:
    member = (
        db.query(Member)
        .filter(
            Member.id == member_id,
            Member.trainer_id == trainer_id,
            Member.deleted_at.is_(None),
        )
        .first()
    )
    if member is None:
        raise HTTPException(status_code=404, detail="Member not found")
    return member


def resolve_member_for(db: Session, user: SessionUser, member_id: int | None) -> Member:
    """The member a trainer names by id, or the signed-in member themselves."""
    if user.role in TRAINER_ROLES:
        if member_id is None:
            raise HTTPException(status_code=400, detail="memberId is required")
        return get_owned_member(db, member_id, user.id)

    if member_id is not None and member_id != user.id:
        raise HTTPException(status_code=404, detail="Member not found")
    member = (
        db.query(Member)
        .filter(Member.id == user.id, Member.deleted_at.is_(None))
        .first()
    )
    if member is None:
        raise HTTPException(status_code=404, detail="Member not found")
    return member


def member_detail(member: Member) -> schemas.MemberDetail:
    base = schemas.MemberOut.model_validate(member)
    return schemas.MemberDetail(
        **base.model_dump(),
        memberships=[
            schemas.MembershipOut.model_validate(m) for m in member.memberships if m.is_active
        ],
        appointment_count=len(member.appointments),
    )


def _phone_in_use(db: Session, trainer_id: int, phone: str, exclude_id: int | None = None) -> bool:
    query = db.query(Member.id).filter(
        Member.trainer_id == trainer_id,
        Member.phone == phone,
        Member.deleted_at.is_(None),
    )
    if exclude_id is not None:
        query = query.filter(Member.id != exclude_id)
    return query.first() is not None


@router.get("", response_model=list[schemas.MemberDetail])
def list_members(
    user: SessionUser = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    members = (
        db.query(Member)
        .filter(Member.trainer_id == user.id, Member.deleted_at.is_(None))
        .order_by(Member.created_at.desc(), Member.id.desc())
        .all()
    )
    return [member_detail(member) for member in members]


@router.post("", response_model=schemas.MemberDetail, status_code=201)
def create_member(
    request: Request,
    payload: schemas.MemberCreate,
    user: SessionUser = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    if _phone_in_use(db, user.id, payload.phone):
        raise HTTPException(status_code=409, detail="Phone number already exists")

    # Members set their own password later through the reset flow.
    member = Member(
        trainer_id=user.id,
        name=payload.name,
        phone=payload.phone,
        email=payload.email or None,
        password=hash_password(generate_temporary_password()),
        birth_date=payload.birth_date,
        gender=payload.gender,
        goal=payload.goal,
        notes=payload.notes or None,
    )
    db.add(member)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Email already in use")
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error creating member trainer_id=%s", user.id)
        raise HTTPException(status_code=500, detail="Failed to create member")
    db.refresh(member)

    log_event(
        db,
        "MEMBER_CREATED",
        request=request,
        actor=user,
        details=format_details(member_id=member.id),
    )
    return member_detail(member)


@router.get("/{member_id}", response_model=schemas.MemberDetail)
def get_member(
    member_id: int,
    user: SessionUser = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    return member_detail(get_owned_member(db, member_id, user.id))


@router.patch("/{member_id}", response_model=schemas.MemberDetail)
def update_member(
    member_id: int,
    payload: schemas.MemberUpdate,
    user: SessionUser = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    member = get_owned_member(db, member_id, user.id)
    changes = payload.model_dump(exclude_unset=True)
    if "phone" in changes and _phone_in_use(db, user.id, changes["phone"], exclude_id=member.id):
        raise HTTPException(status_code=409, detail="Phone number already exists")

    for field, value in changes.items():
        if value is None and field in {"name", "phone", "is_active"}:
            continue
        if field in {"email", "notes", "goal"} and not value:
            value = None
        setattr(member, field, value)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Email already in use")
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error updating member id=%s", member_id)
        raise HTTPException(status_code=500, detail="Failed to update member")
    db.refresh(member)
    return member_detail(member)


@router.delete("/{member_id}", response_model=schemas.AuthMessage)
def delete_member(
    request: Request,
    member_id: int,
    user: SessionUser = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    member = get_owned_member(db, member_id, user.id)
    member.is_active = False
    member.deleted_at = utcnow()
    db.commit()
    log_event(
        db,
        "MEMBER_DELETED",
        request=request,
        actor=user,
        details=format_details(member_id=member_id),
    )
    return {"message": "Member deleted successfully"}
