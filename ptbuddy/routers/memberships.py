import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ptbuddy import schemas
from ptbuddy.database import get_db
from ptbuddy.models import Member, Membership
from ptbuddy.routers.members import get_owned_member
from ptbuddy.scheduling import MembershipType
from ptbuddy.sessions import SessionUser, require_trainer

router = APIRouter(prefix="/memberships", tags=["Memberships"])
logger = logging.getLogger("ptbuddy.memberships")


def get_owned_membership(db: Session, membership_id: int, trainer_id: int) -> Membership:
    membership = (
        db.query(Membership)
        .join(Member, Membership.member_id == Member.id)
        .filter(
            Membership.id == membership_id,
            Member.trainer_id == trainer_id,
            Member.deleted_at.is_(None),
        )
        .first()
    )
    if membership is None:
        raise HTTPException(status_code=404, detail="Membership not found")
    return membership


@router.get("", response_model=list[schemas.MembershipOut])
def list_memberships(
    member_id: Optional[int] = Query(default=None, alias="memberId"),
    active: Optional[bool] = Query(default=None),
    user: SessionUser = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    query = (
        db.query(Membership)
        .join(Member, Membership.member_id == Member.id)
        .filter(Member.trainer_id == user.id, Member.deleted_at.is_(None))
    )
    if member_id is not None:
        query = query.filter(Membership.member_id == member_id)
    if active is not None:
        query = query.filter(Membership.is_active.is_(active))
    return query.order_by(Membership.created_at.desc(), Membership.id.desc()).all()


@router.post("", response_model=schemas.MembershipOut, status_code=201)
def create_membership(
    payload: schemas.MembershipCreate,
    user: SessionUser = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    member = get_owned_member(db, payload.member_id, user.id)

    if payload.type == MembershipType.SESSION:
        if payload.total_sessions is None:
            raise HTTPException(status_code=400, detail="Session memberships require totalSessions")
        total = remaining = payload.total_sessions
    else:
        if payload.end_date is None:
            raise HTTPException(status_code=400, detail="Period memberships require endDate")
        total = remaining = None
    if payload.end_date is not None and payload.end_date < payload.start_date:
        raise HTTPException(status_code=400, detail="endDate must not be before startDate")

    membership = Membership(
        member_id=member.id,
        type=payload.type.value,
        total_sessions=total,
        remaining_sessions=remaining,
        start_date=payload.start_date,
        end_date=payload.end_date,
        price=payload.price,
        notes=payload.notes or None,
    )
    db.add(membership)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error creating membership member_id=%s", member.id)
        raise HTTPException(status_code=500, detail="Failed to create membership")
    db.refresh(membership)
    return membership


@router.patch("/{membership_id}", response_model=schemas.MembershipOut)
def update_membership(
    membership_id: int,
    payload: schemas.MembershipUpdate,
    user: SessionUser = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    membership = get_owned_membership(db, membership_id, user.id)
    changes = payload.model_dump(exclude_unset=True)

    if membership.type == MembershipType.SESSION.value:
        total = changes.get("total_sessions", membership.total_sessions)
        remaining = changes.get("remaining_sessions", membership.remaining_sessions)
        if total is None or remaining is None:
            raise HTTPException(status_code=400, detail="Session counts cannot be cleared")
        if remaining > total:
            raise HTTPException(
                status_code=400,
                detail="remainingSessions cannot exceed totalSessions",
            )
        if remaining == 0 and "remaining_sessions" in changes:
            changes["is_active"] = False
    elif "total_sessions" in changes or "remaining_sessions" in changes:
        raise HTTPException(status_code=400, detail="Period memberships have no session counts")

    end_date = changes.get("end_date", membership.end_date)
    if end_date is not None and end_date < membership.start_date:
        raise HTTPException(status_code=400, detail="endDate must not be before startDate")

    for field, value in changes.items():
        setattr(membership, field, value)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error updating membership id=%s", membership_id)
        raise HTTPException(status_code=500, detail="Failed to update membership")
    db.refresh(membership)
    return membership


@router.delete("/{membership_id}", response_model=schemas.MembershipOut)
def deactivate_membership(
    membership_id: int,
    user: SessionUser = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    membership = get_owned_membership(db, membership_id, user.id)
    membership.is_active = False
    db.commit()
    db.refresh(membership)
    return membership
