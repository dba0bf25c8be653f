from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ptbuddy import schemas
from ptbuddy.database import get_db
from ptbuddy.models import Appointment, Membership, MemberSupplement
from ptbuddy.sessions import SessionUser, require_member

router = APIRouter(prefix="/me", tags=["Member portal"])


@router.get("/appointments", response_model=list[schemas.AppointmentOut])
def my_appointments(
    user: SessionUser = Depends(require_member),
    db: Session = Depends(get_db),
):
    return (
        db.query(Appointment)
        .filter(Appointment.member_id == user.id)
        .order_by(Appointment.scheduled_at.desc(), Appointment.id.desc())
        .all()
    )


@router.get("/memberships", response_model=list[schemas.MembershipOut])
def my_memberships(
    user: SessionUser = Depends(require_member),
    db: Session = Depends(get_db),
):
    return (
        db.query(Membership)
        .filter(Membership.member_id == user.id)
        .order_by(Membership.is_active.desc(), Membership.created_at.desc(), Membership.id.desc())
        .all()
    )


@router.get("/supplements", response_model=list[schemas.MemberSupplementOut])
def my_supplements(
    user: SessionUser = Depends(require_member),
    db: Session = Depends(get_db),
):
    return (
        db.query(MemberSupplement)
        .filter(MemberSupplement.member_id == user.id, MemberSupplement.is_active.is_(True))
        .order_by(MemberSupplement.start_date.desc(), MemberSupplement.id.desc())
        .all()
    )
