import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ptbuddy import schemas
from ptbuddy.audit import format_details, log_event
from ptbuddy.database import get_db
from ptbuddy.models import Appointment, Membership
from ptbuddy.routers.members import get_owned_member
from ptbuddy.scheduling import AppointmentStatus, SchedulingError, change_status, record_event
from ptbuddy.sessions import SessionUser, require_trainer
from ptbuddy.settings import get_settings

router = APIRouter(prefix="/appointments", tags=["Appointments"])
settings = get_settings()
logger = logging.getLogger("ptbuddy.appointments")


def _naive_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def get_owned_appointment(db: Session, appointment_id: int, trainer_id: int) -> Appointment:
    appointment = (
        db.query(Appointment)
        .options(joinedload(Appointment.member))
        .filter(Appointment.id == appointment_id, Appointment.trainer_id == trainer_id)
        .first()
    )
    if appointment is None:
        raise HTTPException(status_code=404, detail="Appointment not found")
    return appointment


@router.get("", response_model=list[schemas.AppointmentOut])
def list_appointments(
    start_date: Optional[datetime] = Query(default=None, alias="startDate"),
    end_date: Optional[datetime] = Query(default=None, alias="endDate"),
    user: SessionUser = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    query = (
        db.query(Appointment)
        .options(joinedload(Appointment.member))
        .filter(Appointment.trainer_id == user.id)
    )
    if start_date is not None and end_date is not None:
        query = query.filter(
            Appointment.scheduled_at >= _naive_utc(start_date),
            Appointment.scheduled_at <= _naive_utc(end_date),
        )
    return query.order_by(Appointment.scheduled_at.asc(), Appointment.id.asc()).all()


@router.post("", response_model=schemas.AppointmentOut, status_code=201)
def create_appointment(
    payload: schemas.AppointmentCreate,
    user: SessionUser = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    member = get_owned_member(db, payload.member_id, user.id)
    if payload.membership_id is not None:
        linked = (
            db.query(Membership)
            .filter(Membership.id == payload.membership_id, Membership.member_id == member.id)
            .first()
        )
        if linked is None:
            raise HTTPException(status_code=404, detail="Membership not found")

    appointment = Appointment(
        trainer_id=user.id,
        member_id=member.id,
        membership_id=payload.membership_id,
        scheduled_at=_naive_utc(payload.scheduled_at),
        duration=payload.duration or settings.default_appointment_minutes,
        status=AppointmentStatus.SCHEDULED.value,
        notes=payload.notes or None,
    )
    try:
        db.add(appointment)
        db.flush()
        record_event(db, appointment, "CREATED", actor=user, note=payload.scheduled_at.isoformat())
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error creating appointment trainer_id=%s", user.id)
        raise HTTPException(status_code=500, detail="Failed to create appointment")
    db.refresh(appointment)
    return appointment


@router.get("/{appointment_id}", response_model=schemas.AppointmentOut)
def get_appointment(
    appointment_id: int,
    user: SessionUser = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    return get_owned_appointment(db, appointment_id, user.id)


@router.get("/{appointment_id}/events", response_model=list[schemas.AppointmentEventOut])
def list_appointment_events(
    appointment_id: int,
    user: SessionUser = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    return get_owned_appointment(db, appointment_id, user.id).events


@router.patch("/{appointment_id}", response_model=schemas.AppointmentOut)
def update_appointment(
    request: Request,
    appointment_id: int,
    payload: schemas.AppointmentUpdate,
    user: SessionUser = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    appointment = get_owned_appointment(db, appointment_id, user.id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("scheduled_at") is not None:
        changes["scheduled_at"] = _naive_utc(changes["scheduled_at"])
    requested_status = changes.pop("status", None)
    previous_status = appointment.status

    try:
        charged = None
        if requested_status is not None:
            charged = change_status(db, appointment, requested_status, actor=user)

        if changes.get("scheduled_at") is not None and changes["scheduled_at"] != appointment.scheduled_at:
            record_event(
                db,
                appointment,
                "RESCHEDULED",
                actor=user,
                note=f"{appointment.scheduled_at.isoformat()} -> {changes['scheduled_at'].isoformat()}",
            )
        if "scheduled_at" in changes and changes["scheduled_at"] is not None:
            appointment.scheduled_at = changes["scheduled_at"]
        if "duration" in changes and changes["duration"] is not None:
            appointment.duration = changes["duration"]
        if "notes" in changes:
            appointment.notes = changes["notes"] or None
        db.commit()
    except SchedulingError as exc:
        db.rollback()
        logger.info("Rejected appointment update id=%s: %s", appointment_id, exc)
        raise HTTPException(status_code=409, detail=str(exc))
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error updating appointment id=%s", appointment_id)
        raise HTTPException(status_code=500, detail="Failed to update appointment")

    if requested_status == AppointmentStatus.COMPLETED and previous_status != AppointmentStatus.COMPLETED.value:
        log_event(
            db,
            "APPOINTMENT_COMPLETED",
            request=request,
            actor=user,
            details=format_details(
                appointment_id=appointment_id,
                membership_id=charged.id if charged else None,
            ),
        )
    db.refresh(appointment)
    return appointment


@router.delete("/{appointment_id}", response_model=schemas.AuthMessage)
def delete_appointment(
    request: Request,
    appointment_id: int,
    user: SessionUser = Depends(require_trainer),
    db: Session = Depends(get_db),
):
    appointment = get_owned_appointment(db, appointment_id, user.id)
    try:
        db.delete(appointment)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error deleting appointment id=%s", appointment_id)
        raise HTTPException(status_code=500, detail="Failed to delete appointment")

    log_event(
        db,
        "APPOINTMENT_DELETED",
        request=request,
        actor=user,
        details=format_details(appointment_id=appointment_id),
    )
    return {"message": "Appointment deleted successfully"}
