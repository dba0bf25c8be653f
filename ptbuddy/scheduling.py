"""Appointment lifecycle and membership credit consumption.

Status changes go through an explicit transition table. Completing an
appointment consumes one session credit from the member's membership, guarded
by a conditional UPDATE so the remaining count never goes below zero and
concurrent completions of the same appointment cannot both succeed.

None of the functions here commit; the caller owns the transaction.
"""

from datetime import date
from enum import Enum

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from ptbuddy.models import Appointment, AppointmentEvent, Membership, utcnow


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class MembershipType(str, Enum):
    SESSION = "session"
    PERIOD = "period"


ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: frozenset(
        {
            AppointmentStatus.COMPLETED,
            AppointmentStatus.CANCELLED,
            AppointmentStatus.NO_SHOW,
        }
    ),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
}


class SchedulingError(Exception):
    """Base class for lifecycle rule violations."""


class InvalidTransition(SchedulingError):
    def __init__(self, current: AppointmentStatus, requested: AppointmentStatus):
        self.current = current
        self.requested = requested
        super().__init__(
            f"Cannot change appointment status from {current.value} to {requested.value}"
        )


class ConcurrentUpdate(SchedulingError):
    def __init__(self, appointment_id: int):
        self.appointment_id = appointment_id
        super().__init__("Appointment was modified by another request; reload and retry")


class MembershipExhausted(SchedulingError):
    def __init__(self, membership_id: int):
        self.membership_id = membership_id
        super().__init__("Membership has no remaining sessions")


def can_transition(current: AppointmentStatus, requested: AppointmentStatus) -> bool:
    return requested in ALLOWED_TRANSITIONS[current]


def is_current(membership: Membership, today: date) -> bool:
    return membership.is_active and (membership.end_date is None or membership.end_date >= today)


def expire_lapsed_memberships(db: Session, member_id: int, today: date) -> int:
    """Deactivate the member's active memberships whose end date has passed."""
    result = db.execute(
        update(Membership)
        .where(
            Membership.member_id == member_id,
            Membership.is_active.is_(True),
            Membership.end_date.is_not(None),
            Membership.end_date < today,
        )
        .values(is_active=False, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


def select_membership(db: Session, appointment: Appointment, today: date | None = None) -> Membership | None:
    """Pick the membership a completed appointment draws from.

    Lapsed memberships are deactivated first and never chosen. The
    appointment's own membership wins when it is still current; otherwise
    the member's earliest-created current membership is used.
    """
    today = today or utcnow().date()
    expire_lapsed_memberships(db, appointment.member_id, today)

    linked = appointment.membership
    if linked is not None and linked.member_id == appointment.member_id and is_current(linked, today):
        return linked

    return (
        db.query(Membership)
        .filter(
            Membership.member_id == appointment.member_id,
            Membership.is_active.is_(True),
            or_(Membership.end_date.is_(None), Membership.end_date >= today),
        )
        .order_by(Membership.created_at.asc(), Membership.id.asc())
        .first()
    )


def decrement_if_eligible(db: Session, membership: Membership) -> bool:
    """Consume one session credit. Returns False when the membership is not session-based."""
    if membership.type != MembershipType.SESSION.value or membership.remaining_sessions is None:
        return False

    result = db.execute(
        update(Membership)
        .where(
            Membership.id == membership.id,
            Membership.remaining_sessions > 0,
        )
        .values(
            remaining_sessions=Membership.remaining_sessions - 1,
            updated_at=utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise MembershipExhausted(membership.id)

    db.refresh(membership)
    if membership.remaining_sessions == 0:
        membership.is_active = False
    return True


def record_event(
    db: Session,
    appointment: Appointment,
    action: str,
    actor=None,
    note: str | None = None,
) -> None:
    db.add(
        AppointmentEvent(
            appointment_id=appointment.id,
            action=action,
            actor_id=getattr(actor, "id", None),
            actor_email=getattr(actor, "email", None),
            actor_role=getattr(actor, "role", None),
            note=note,
        )
    )


def change_status(
    db: Session,
    appointment: Appointment,
    requested: AppointmentStatus,
    actor=None,
) -> Membership | None:
    """Move an appointment to ``requested`` and apply the completion side effect.

    Returns the membership that was charged, if any. Re-applying the current
    status is a no-op.
    """
    current = AppointmentStatus(appointment.status)
    if requested == current:
        return None
    if not can_transition(current, requested):
        raise InvalidTransition(current, requested)

    result = db.execute(
        update(Appointment)
        .where(
            Appointment.id == appointment.id,
            Appointment.status == current.value,
        )
        .values(status=requested.value, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ConcurrentUpdate(appointment.id)
    db.refresh(appointment)

    charged = None
    if requested == AppointmentStatus.COMPLETED:
        membership = select_membership(db, appointment)
        if membership is not None and decrement_if_eligible(db, membership):
            charged = membership
            appointment.membership_id = membership.id

    note = f"{current.value} -> {requested.value}"
    if charged is not None:
        note += f"; membership {charged.id} remaining={charged.remaining_sessions}"
    record_event(db, appointment, f"STATUS_{requested.value.upper()}", actor=actor, note=note)
    return charged
