"""Supplement catalogue, member assignments and daily intake logs.

Each trainer keeps a private catalogue. Assigning a supplement to a member
is an upsert on the (member, supplement) pair, and intake logs are an upsert
on (member, supplement, day). Catalogue entries and assignments are
deactivated, never deleted.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ptbuddy import schemas
from ptbuddy.audit import format_details, log_event
from ptbuddy.database import get_db
from ptbuddy.models import Member, MemberSupplement, Supplement, SupplementLog
from ptbuddy.routers.members import get_owned_member, resolve_member_for
from ptbuddy.sessions import TRAINER_ROLES, SessionUser, get_current_user, require_trainer

router = APIRouter(tags=["Supplements"])
logger = logging.getLogger("ptbuddy.supplements")

OPTIONAL_TEXT_FIELDS = {"brand", "dosage", "timing", "description", "product_url", "image_url"}


def get_owned_supplement(
    db: Session,
    supplement_id: int,
    trainer_id: int | None,
    active_only: bool = False,
) -> Supplement:
    query = db.query(Supplement).filter(
        Supplement.id == supplement_id,
        Supplement.trainer_id == trainer_id,
    )
    if active_only:
        query = query.filter(Supplement.is_active.is_(True))
    supplement = query.first()
    if supplement is None:
        raise HTTPException(status_code=404, detail="Supplement not found")
    return supplement


def _commit(db: Session, action: str, **context) -> None:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error trying to %s %s", action, format_details(**context))
        raise HTTPException(status_code=500, detail=f"Failed to {action}")


@router.get("/supplements", response_model=list[schemas.SupplementOut])
def list_supplements(
    user: SessionUser = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    return (
        db.query(Supplement)
        .filter(Supplement.trainer_id == user.id, Supplement.is_active.is_(True))
        .order_by(Supplement.created_at.desc(), Supplement.id.desc())
        .all()
    )


@router.post("/supplements", response_model=schemas.SupplementOut, status_code=201)
def create_supplement(
    payload: schemas.SupplementCreate,
    user: SessionUser = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    fields = payload.model_dump()
    for field in OPTIONAL_TEXT_FIELDS:
        fields[field] = fields[field] or None
    supplement = Supplement(trainer_id=user.id, **fields)
    db.add(supplement)
    _commit(db, "create supplement", trainer_id=user.id)
    db.refresh(supplement)
    return supplement


@router.get("/supplements/{supplement_id}", response_model=schemas.SupplementDetail)
def get_supplement(
    supplement_id: int,
    user: SessionUser = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    supplement = get_owned_supplement(db, supplement_id, user.id)
    log_count = (
        db.query(func.count(SupplementLog.id))
        .filter(SupplementLog.supplement_id == supplement.id)
        .scalar()
    )
    return schemas.SupplementDetail(
        **schemas.SupplementOut.model_validate(supplement).model_dump(),
        assignments=[
            schemas.AssignmentBrief.model_validate(assignment)
            for assignment in supplement.assignments
            if assignment.is_active
        ],
        assignment_count=len(supplement.assignments),
        log_count=log_count,
    )


@router.patch("/supplements/{supplement_id}", response_model=schemas.SupplementOut)
def update_supplement(
    supplement_id: int,
    payload: schemas.SupplementUpdate,
    user: SessionUser = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    supplement = get_owned_supplement(db, supplement_id, user.id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None and field in {"name", "category", "is_active"}:
            continue
        if field in OPTIONAL_TEXT_FIELDS and not value:
            value = None
        setattr(supplement, field, value)
    _commit(db, "update supplement", supplement_id=supplement_id)
    db.refresh(supplement)
    return supplement


@router.delete("/supplements/{supplement_id}", response_model=schemas.AuthMessage)
def deactivate_supplement(
    request: Request,
    supplement_id: int,
    user: SessionUser = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    supplement = get_owned_supplement(db, supplement_id, user.id)
    supplement.is_active = False
    _commit(db, "delete supplement", supplement_id=supplement_id)
    log_event(
        db,
        "SUPPLEMENT_DEACTIVATED",
        request=request,
        actor=user,
        details=format_details(supplement_id=supplement_id),
    )
    return {"message": "Supplement deleted"}


@router.get("/member-supplements", response_model=list[schemas.MemberSupplementOut])
def list_assignments(
    member_id: Optional[int] = Query(default=None, alias="memberId"),
    user: SessionUser = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    query = (
        db.query(MemberSupplement)
        .join(Member, MemberSupplement.member_id == Member.id)
        .filter(
            Member.trainer_id == user.id,
            Member.deleted_at.is_(None),
            MemberSupplement.is_active.is_(True),
        )
    )
    if member_id is not None:
        member = get_owned_member(db, member_id, user.id)
        query = query.filter(MemberSupplement.member_id == member.id)
    return query.order_by(MemberSupplement.created_at.desc(), MemberSupplement.id.desc()).all()


@router.post("/member-supplements", response_model=schemas.MemberSupplementOut)
def assign_supplement(
    payload: schemas.MemberSupplementCreate,
    response: Response,
    user: SessionUser = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    member = get_owned_member(db, payload.member_id, user.id)
    supplement = get_owned_supplement(db, payload.supplement_id, user.id, active_only=True)

    assignment = (
        db.query(MemberSupplement)
        .filter(
            MemberSupplement.member_id == member.id,
            MemberSupplement.supplement_id == supplement.id,
        )
        .first()
    )
    if assignment is None:
        start_date = payload.start_date or date.today()
    else:
        start_date = payload.start_date or assignment.start_date
    if payload.end_date is not None and payload.end_date < start_date:
        raise HTTPException(status_code=400, detail="endDate must not be before startDate")

    if assignment is None:
        assignment = MemberSupplement(
            member_id=member.id,
            supplement_id=supplement.id,
            recommended_by=user.id,
        )
        db.add(assignment)
        response.status_code = 201

    # Re-assigning revives a deactivated pair with the new schedule.
    assignment.start_date = start_date
    assignment.end_date = payload.end_date
    assignment.custom_dosage = payload.custom_dosage or None
    assignment.custom_timing = payload.custom_timing or None
    assignment.notes = payload.notes or None
    assignment.is_active = True
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Supplement was assigned concurrently; retry")
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error assigning supplement member_id=%s supplement_id=%s", member.id, supplement.id)
        raise HTTPException(status_code=500, detail="Failed to assign supplement")
    db.refresh(assignment)
    return assignment


@router.delete("/member-supplements/{assignment_id}", response_model=schemas.AuthMessage)
def unassign_supplement(
    assignment_id: int,
    user: SessionUser = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    assignment = (
        db.query(MemberSupplement)
        .join(Member, MemberSupplement.member_id == Member.id)
        .filter(MemberSupplement.id == assignment_id, Member.trainer_id == user.id)
        .first()
    )
    if assignment is None:
        raise HTTPException(status_code=404, detail="Assignment not found")

    assignment.is_active = False
    _commit(db, "cancel assignment", assignment_id=assignment_id)
    return {"message": "Assignment cancelled"}


@router.get("/supplement-logs", response_model=list[schemas.SupplementLogOut])
def list_logs(
    member_id: Optional[int] = Query(default=None, alias="memberId"),
    start_date: Optional[date] = Query(default=None, alias="startDate"),
    end_date: Optional[date] = Query(default=None, alias="endDate"),
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    query = db.query(SupplementLog)
    if user.role in TRAINER_ROLES:
        query = query.join(Member, SupplementLog.member_id == Member.id).filter(
            Member.trainer_id == user.id,
            Member.deleted_at.is_(None),
        )
        if member_id is not None:
            query = query.filter(SupplementLog.member_id == get_owned_member(db, member_id, user.id).id)
    else:
        query = query.filter(SupplementLog.member_id == resolve_member_for(db, user, member_id).id)

    if start_date is not None:
        query = query.filter(SupplementLog.date >= start_date)
    if end_date is not None:
        query = query.filter(SupplementLog.date <= end_date)
    return query.order_by(SupplementLog.date.desc(), SupplementLog.id.desc()).all()


@router.post("/supplement-logs", response_model=schemas.SupplementLogOut)
def record_intake(
    payload: schemas.SupplementLogUpsert,
    response: Response,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    member = resolve_member_for(db, user, payload.member_id)
    supplement = get_owned_supplement(db, payload.supplement_id, member.trainer_id)

    log = (
        db.query(SupplementLog)
        .filter(
            SupplementLog.member_id == member.id,
            SupplementLog.supplement_id == supplement.id,
            SupplementLog.date == payload.log_date,
        )
        .first()
    )
    if log is None:
        log = SupplementLog(
            member_id=member.id,
            supplement_id=supplement.id,
            date=payload.log_date,
            taken=bool(payload.taken),
            notes=payload.notes or None,
        )
        db.add(log)
        response.status_code = 201
    else:
        if payload.taken is not None:
            log.taken = payload.taken
        if "notes" in payload.model_fields_set:
            log.notes = payload.notes or None

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Intake was recorded concurrently; retry")
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error recording intake member_id=%s supplement_id=%s", member.id, supplement.id)
        raise HTTPException(status_code=500, detail="Failed to record intake")
    db.refresh(log)
    return log
