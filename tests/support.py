import os
import unittest
import uuid
from datetime import date, datetime, timedelta

os.environ.setdefault("DATABASE_URL", "sqlite:///./ptbuddy_test.db")
os.environ.setdefault("ENVIRONMENT", "test")

from fastapi.testclient import TestClient  # noqa: E402

from ptbuddy.database import session_scope  # noqa: E402
from ptbuddy.login_guard import login_guard  # noqa: E402
from ptbuddy.main import app  # noqa: E402
from ptbuddy.models import Member, Membership, Trainer  # noqa: E402
from ptbuddy.security import hash_password  # noqa: E402

STRONG_PASSWORD = "Pass#1234"


def unique_email(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:8]}@example.com"


def unique_phone() -> str:
    digits = uuid.uuid4().int % 10**8
    return f"010-{digits // 10**4:04d}-{digits % 10**4:04d}"


def create_trainer(email: str | None = None, role: str = "trainer", name: str = "Coach Kim") -> Trainer:
    with session_scope() as db:
        trainer = Trainer(
            email=email or unique_email(role),
            password=hash_password(STRONG_PASSWORD),
            name=name,
            phone=unique_phone(),
            role=role,
        )
        db.add(trainer)
        db.commit()
        db.refresh(trainer)
        db.expunge(trainer)
        return trainer


def create_member(trainer_id: int | None, email: str | None = None, name: str = "Lee Member") -> Member:
    with session_scope() as db:
        member = Member(
            trainer_id=trainer_id,
            name=name,
            phone=unique_phone(),
            email=email or unique_email("member"),
            password=hash_password(STRONG_PASSWORD),
        )
        db.add(member)
        db.commit()
        db.refresh(member)
        db.expunge(member)
        return member


def create_membership(
    member_id: int,
    remaining: int | None = 5,
    total: int | None = 10,
    type: str = "session",
    is_active: bool = True,
    created_at: datetime | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
) -> Membership:
    with session_scope() as db:
        membership = Membership(
            member_id=member_id,
            type=type,
            total_sessions=total if type == "session" else None,
            remaining_sessions=remaining if type == "session" else None,
            start_date=start_date or date.today(),
            end_date=end_date or (None if type == "session" else date.today() + timedelta(days=30)),
            price=300000,
            is_active=is_active,
        )
        if created_at is not None:
            membership.created_at = created_at
        db.add(membership)
        db.commit()
        db.refresh(membership)
        db.expunge(membership)
        return membership


def fetch(model, object_id: int):
    with session_scope() as db:
        obj = db.query(model).filter(model.id == object_id).first()
        if obj is not None:
            db.expunge(obj)
        return obj


class ApiTestCase(unittest.TestCase):
    def setUp(self) -> None:
        login_guard.reset()
        self.client = TestClient(app)

    def tearDown(self) -> None:
        self.client.close()

    def login(self, email: str, role: str = "trainer", password: str = STRONG_PASSWORD):
        response = self.client.post(
            "/auth/login",
            json={"email": email, "password": password, "role": role},
        )
        self.assertEqual(response.status_code, 200, response.text)
        return response

    def logout(self) -> None:
        self.client.post("/auth/logout")
