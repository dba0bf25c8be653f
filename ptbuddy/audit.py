"""Security and business event trail.

Every event is written to the ``audit_logs`` table and echoed to the
``ptbuddy.audit`` logger. ``log_event`` commits on its own, so callers record
the event after their main transaction has committed.
"""

import logging

from fastapi import Request
from sqlalchemy.orm import Session

from ptbuddy.models import AuditLog
from ptbuddy.sessions import client_ip

logger = logging.getLogger("ptbuddy.audit")


def format_details(**fields) -> str | None:
    parts = [f"{key}={value}" for key, value in fields.items()]
    return " ".join(parts) or None


def log_event(
    db: Session,
    event_type: str,
    *,
    request: Request | None = None,
    actor=None,
    role: str | None = None,
    email: str | None = None,
    details: str | None = None,
) -> AuditLog:
    """Record ``event_type``.

    ``actor`` may be a session user or an account row; its id, email and role
    are used unless ``email`` or ``role`` override them. Member rows carry no
    role attribute, so callers pass ``role`` for those.
    """
    entry = AuditLog(
        event_type=event_type,
        actor_id=getattr(actor, "id", None),
        actor_role=role or getattr(actor, "role", None),
        actor_email=email or getattr(actor, "email", None),
        ip_address=client_ip(request) if request is not None else None,
        details=details,
    )
    db.add(entry)
    db.commit()
    logger.info(
        "audit event=%s actor_id=%s role=%s email=%s ip=%s details=%s",
        entry.event_type,
        entry.actor_id,
        entry.actor_role,
        entry.actor_email,
        entry.ip_address,
        entry.details,
    )
    return entry
