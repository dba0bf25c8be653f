from tests.support import (
    ApiTestCase,
    create_member,
    create_membership,
    create_trainer,
    fetch,
)

from datetime import date, datetime, timedelta, timezone

from ptbuddy.models import Appointment, Membership


class AppointmentLifecycleTests(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.trainer = create_trainer()
        self.member = create_member(self.trainer.id)
        self.login(self.trainer.email)

    def _create_appointment(self, membership_id: int | None = None, **extra) -> dict:
        body = {
            "memberId": self.member.id,
            "scheduledAt": "2026-11-02T10:00:00",
            **extra,
        }
        if membership_id is not None:
            body["membershipId"] = membership_id
        response = self.client.post("/appointments", json=body)
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def _complete(self, appointment_id: int):
        return self.client.patch(f"/appointments/{appointment_id}", json={"status": "completed"})

    def test_create_appointment_defaults(self) -> None:
        appointment = self._create_appointment(notes="Leg day")
        self.assertEqual(appointment["status"], "scheduled")
        self.assertEqual(appointment["duration"], 60)
        self.assertEqual(appointment["notes"], "Leg day")
        self.assertEqual(appointment["member"]["id"], self.member.id)

    def test_completing_appointment_consumes_one_session(self) -> None:
        membership = create_membership(self.member.id, remaining=5, total=10)
        appointment = self._create_appointment()

        response = self._complete(appointment["id"])
        self.assertEqual(response.status_code, 200, response.text)
        body = response.json()
        self.assertEqual(body["status"], "completed")
        self.assertEqual(body["membershipId"], membership.id)
        self.assertEqual(body["member"]["id"], self.member.id)
        self.assertEqual(fetch(Membership, membership.id).remaining_sessions, 4)

    def test_repeated_completion_is_idempotent(self) -> None:
        membership = create_membership(self.member.id, remaining=5, total=10)
        appointment = self._create_appointment()

        first = self._complete(appointment["id"])
        second = self._complete(appointment["id"])
        self.assertEqual(first.status_code, 200)
        self.assertEqual(second.status_code, 200)
        self.assertEqual(second.json()["status"], "completed")
        self.assertEqual(fetch(Membership, membership.id).remaining_sessions, 4)

    def test_completion_rejected_when_no_sessions_remain(self) -> None:
        membership = create_membership(self.member.id, remaining=0, total=10)
        appointment = self._create_appointment()

        response = self._complete(appointment["id"])
        self.assertEqual(response.status_code, 409)
        self.assertEqual(fetch(Membership, membership.id).remaining_sessions, 0)
        self.assertEqual(fetch(Appointment, appointment["id"]).status, "scheduled")

    def test_last_session_deactivates_membership(self) -> None:
        membership = create_membership(self.member.id, remaining=1, total=10)
        appointment = self._create_appointment()

        self.assertEqual(self._complete(appointment["id"]).status_code, 200)
        stored = fetch(Membership, membership.id)
        self.assertEqual(stored.remaining_sessions, 0)
        self.assertFalse(stored.is_active)

        # No active membership left: the next completion is recorded without a charge.
        follow_up = self._create_appointment()
        response = self._complete(follow_up["id"])
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.json()["membershipId"])
        self.assertEqual(fetch(Membership, membership.id).remaining_sessions, 0)

    def test_period_membership_is_not_charged(self) -> None:
        membership = create_membership(self.member.id, type="period")
        appointment = self._create_appointment()

        response = self._complete(appointment["id"])
        self.assertEqual(response.status_code, 200)
        stored = fetch(Membership, membership.id)
        self.assertIsNone(stored.remaining_sessions)
        self.assertTrue(stored.is_active)

    def test_earliest_active_membership_is_charged(self) -> None:
        now = datetime.now(timezone.utc)
        older = create_membership(self.member.id, remaining=3, total=3, created_at=now - timedelta(days=2))
        newer = create_membership(self.member.id, remaining=8, total=8, created_at=now)
        appointment = self._create_appointment()

        self.assertEqual(self._complete(appointment["id"]).status_code, 200)
        self.assertEqual(fetch(Membership, older.id).remaining_sessions, 2)
        self.assertEqual(fetch(Membership, newer.id).remaining_sessions, 8)

    def test_linked_membership_takes_precedence(self) -> None:
        now = datetime.now(timezone.utc)
        older = create_membership(self.member.id, remaining=3, total=3, created_at=now - timedelta(days=2))
        linked = create_membership(self.member.id, remaining=8, total=8, created_at=now)
        appointment = self._create_appointment(membership_id=linked.id)

        self.assertEqual(self._complete(appointment["id"]).status_code, 200)
        self.assertEqual(fetch(Membership, older.id).remaining_sessions, 3)
        self.assertEqual(fetch(Membership, linked.id).remaining_sessions, 7)

    def test_lapsed_membership_is_skipped_and_deactivated(self) -> None:
        now = datetime.now(timezone.utc)
        today = date.today()
        lapsed = create_membership(
            self.member.id,
            type="period",
            start_date=today - timedelta(days=60),
            end_date=today - timedelta(days=30),
            created_at=now - timedelta(days=60),
        )
        current = create_membership(self.member.id, remaining=10, total=10, created_at=now)
        appointment = self._create_appointment()

        response = self._complete(appointment["id"])
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json()["membershipId"], current.id)
        self.assertEqual(fetch(Membership, current.id).remaining_sessions, 9)
        self.assertFalse(fetch(Membership, lapsed.id).is_active)

    def test_lapsed_linked_membership_falls_back(self) -> None:
        today = date.today()
        linked = create_membership(
            self.member.id,
            remaining=4,
            total=10,
            start_date=today - timedelta(days=90),
            end_date=today - timedelta(days=2),
        )
        fallback = create_membership(self.member.id, remaining=6, total=10)
        appointment = self._create_appointment(membership_id=linked.id)

        response = self._complete(appointment["id"])
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json()["membershipId"], fallback.id)
        self.assertEqual(fetch(Membership, linked.id).remaining_sessions, 4)
        self.assertFalse(fetch(Membership, linked.id).is_active)
        self.assertEqual(fetch(Membership, fallback.id).remaining_sessions, 5)

    def test_terminal_status_cannot_change(self) -> None:
        appointment = self._create_appointment()
        cancel = self.client.patch(f"/appointments/{appointment['id']}", json={"status": "cancelled"})
        self.assertEqual(cancel.status_code, 200)

        reopen = self.client.patch(f"/appointments/{appointment['id']}", json={"status": "scheduled"})
        complete = self._complete(appointment["id"])
        self.assertEqual(reopen.status_code, 409)
        self.assertEqual(complete.status_code, 409)
        self.assertEqual(fetch(Appointment, appointment["id"]).status, "cancelled")

    def test_no_show_does_not_charge(self) -> None:
        membership = create_membership(self.member.id, remaining=5, total=10)
        appointment = self._create_appointment()

        response = self.client.patch(f"/appointments/{appointment['id']}", json={"status": "no_show"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(fetch(Membership, membership.id).remaining_sessions, 5)

    def test_unknown_status_is_rejected(self) -> None:
        appointment = self._create_appointment()
        response = self.client.patch(f"/appointments/{appointment['id']}", json={"status": "done"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Invalid input")

    def test_partial_update_keeps_unspecified_fields(self) -> None:
        appointment = self._create_appointment(notes="Warm-up first", duration=50)
        response = self.client.patch(
            f"/appointments/{appointment['id']}",
            json={"scheduledAt": "2026-11-03T18:30:00"},
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["scheduledAt"].startswith("2026-11-03T18:30:00"))
        self.assertEqual(body["duration"], 50)
        self.assertEqual(body["notes"], "Warm-up first")
        self.assertEqual(body["status"], "scheduled")

    def test_other_trainers_appointment_is_not_found_and_untouched(self) -> None:
        membership = create_membership(self.member.id, remaining=5, total=10)
        appointment = self._create_appointment()
        self.logout()

        intruder = create_trainer()
        self.login(intruder.email)
        patch = self._complete(appointment["id"])
        delete = self.client.delete(f"/appointments/{appointment['id']}")
        self.assertEqual(patch.status_code, 404)
        self.assertEqual(delete.status_code, 404)
        self.assertEqual(fetch(Appointment, appointment["id"]).status, "scheduled")
        self.assertEqual(fetch(Membership, membership.id).remaining_sessions, 5)

    def test_requires_session(self) -> None:
        appointment = self._create_appointment()
        self.logout()
        response = self._complete(appointment["id"])
        self.assertEqual(response.status_code, 401)

    def test_member_session_cannot_use_trainer_routes(self) -> None:
        self.logout()
        self.login(self.member.email, role="member")
        self.assertEqual(self.client.get("/appointments").status_code, 403)

    def test_cannot_book_for_another_trainers_member(self) -> None:
        stranger = create_member(create_trainer().id)
        response = self.client.post(
            "/appointments",
            json={"memberId": stranger.id, "scheduledAt": "2026-11-02T10:00:00"},
        )
        self.assertEqual(response.status_code, 404)

    def test_delete_is_permanent(self) -> None:
        appointment = self._create_appointment()
        response = self.client.delete(f"/appointments/{appointment['id']}")
        self.assertEqual(response.status_code, 200)
        self.assertIn("message", response.json())
        self.assertIsNone(fetch(Appointment, appointment["id"]))
        self.assertEqual(self.client.get(f"/appointments/{appointment['id']}").status_code, 404)

    def test_list_filters_by_date_range(self) -> None:
        inside = self._create_appointment(scheduledAt="2026-12-10T09:00:00")
        self._create_appointment(scheduledAt="2027-01-15T09:00:00")

        response = self.client.get(
            "/appointments",
            params={"startDate": "2026-12-01T00:00:00", "endDate": "2026-12-31T23:59:59"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual([item["id"] for item in response.json()], [inside["id"]])

    def test_event_timeline_records_lifecycle(self) -> None:
        create_membership(self.member.id, remaining=2, total=2)
        appointment = self._create_appointment()
        self.client.patch(f"/appointments/{appointment['id']}", json={"scheduledAt": "2026-11-04T07:00:00"})
        self._complete(appointment["id"])

        response = self.client.get(f"/appointments/{appointment['id']}/events")
        self.assertEqual(response.status_code, 200)
        actions = [event["action"] for event in response.json()]
        self.assertEqual(actions, ["CREATED", "RESCHEDULED", "STATUS_COMPLETED"])
        self.assertEqual(response.json()[-1]["actorId"], self.trainer.id)

    def test_api_v1_prefix_serves_appointments(self) -> None:
        appointment = self._create_appointment()
        response = self.client.get(f"/api/v1/appointments/{appointment['id']}")
        self.assertEqual(response.status_code, 200)
