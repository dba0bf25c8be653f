from tests.support import (
    ApiTestCase,
    STRONG_PASSWORD,
    create_member,
    create_trainer,
    unique_email,
    unique_phone,
)

from ptbuddy.settings import get_settings


class AuthFlowTests(ApiTestCase):
    def _signup(self, email: str, role: str = "trainer", **overrides):
        body = {
            "role": role,
            "email": email,
            "password": STRONG_PASSWORD,
            "confirmPassword": STRONG_PASSWORD,
            "name": "New Coach",
            "phone": unique_phone(),
        }
        body.update(overrides)
        return self.client.post("/auth/signup", json=body)

    def test_signup_starts_session_and_logout_ends_it(self) -> None:
        email = unique_email("signup")
        signup = self._signup(email)
        self.assertEqual(signup.status_code, 201, signup.text)
        self.assertEqual(signup.json()["user"]["role"], "trainer")

        me = self.client.get("/auth/me")
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.json()["email"], email)

        self.assertEqual(self.client.post("/auth/logout").status_code, 200)
        self.assertEqual(self.client.get("/auth/me").status_code, 401)

        self.login(email)

    def test_member_signup_and_login_reports_trainer(self) -> None:
        email = unique_email("selfmember")
        self.assertEqual(self._signup(email, role="member").status_code, 201)
        self.logout()
        login = self.login(email, role="member")
        self.assertEqual(login.json()["user"]["role"], "member")
        self.assertIsNone(login.json()["user"]["trainerName"])

        trainer = create_trainer(name="Coach Park")
        member = create_member(trainer.id)
        self.logout()
        login = self.login(member.email, role="member")
        self.assertEqual(login.json()["user"]["trainerName"], "Coach Park")

    def test_signup_validation(self) -> None:
        mismatch = self._signup(unique_email("mismatch"), confirmPassword="Other#1234")
        weak = self._signup(unique_email("weak"), password="weakpass", confirmPassword="weakpass")
        bad_phone = self._signup(unique_email("phone"), phone="12345")
        self.assertEqual(mismatch.status_code, 400)
        self.assertEqual(mismatch.json()["detail"], "Passwords do not match")
        self.assertEqual(weak.status_code, 400)
        self.assertEqual(bad_phone.status_code, 400)

    def test_email_is_unique_across_roles(self) -> None:
        trainer = create_trainer()
        duplicate = self._signup(trainer.email, role="member")
        self.assertEqual(duplicate.status_code, 400)
        self.assertEqual(duplicate.json()["detail"], "Email already in use")

    def test_check_email(self) -> None:
        trainer = create_trainer()
        taken = self.client.post("/auth/check-email", json={"email": trainer.email, "role": "trainer"})
        free = self.client.post(
            "/auth/check-email",
            json={"email": unique_email("free"), "role": "trainer"},
        )
        self.assertFalse(taken.json()["available"])
        self.assertTrue(free.json()["available"])

    def test_invalid_payload_returns_400(self) -> None:
        response = self.client.post("/auth/login", json={"email": "not-an-email", "password": "x", "role": "trainer"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Invalid input")
        self.assertTrue(response.json()["errors"])

    def test_wrong_password_is_unauthorized(self) -> None:
        trainer = create_trainer()
        response = self.client.post(
            "/auth/login",
            json={"email": trainer.email, "password": "Wrong#1234", "role": "trainer"},
        )
        self.assertEqual(response.status_code, 401)

    def test_admin_login_requires_admin_role(self) -> None:
        trainer = create_trainer()
        admin = create_trainer(role="admin")

        as_admin = self.client.post(
            "/auth/login",
            json={"email": trainer.email, "password": STRONG_PASSWORD, "role": "admin"},
        )
        admin_as_trainer = self.client.post(
            "/auth/login",
            json={"email": admin.email, "password": STRONG_PASSWORD, "role": "trainer"},
        )
        self.assertEqual(as_admin.status_code, 403)
        self.assertEqual(admin_as_trainer.status_code, 403)

        login = self.login(admin.email, role="admin")
        self.assertEqual(login.json()["user"]["role"], "admin")
        self.assertEqual(self.client.get("/members").status_code, 200)

    def test_deleted_account_cannot_log_in(self) -> None:
        trainer = create_trainer()
        self.login(trainer.email)

        wrong = self.client.post(
            "/auth/delete-account",
            json={"password": "Wrong#1234", "confirmation": "DELETE"},
        )
        self.assertEqual(wrong.status_code, 400)

        deleted = self.client.post(
            "/auth/delete-account",
            json={"password": STRONG_PASSWORD, "confirmation": "DELETE"},
        )
        self.assertEqual(deleted.status_code, 200)
        self.assertEqual(self.client.get("/auth/me").status_code, 401)

        again = self.client.post(
            "/auth/login",
            json={"email": trainer.email, "password": STRONG_PASSWORD, "role": "trainer"},
        )
        self.assertEqual(again.status_code, 403)

    def test_account_state_is_hidden_without_password(self) -> None:
        trainer = create_trainer()
        self.login(trainer.email)
        self.client.post(
            "/auth/delete-account",
            json={"password": STRONG_PASSWORD, "confirmation": "DELETE"},
        )

        guess = self.client.post(
            "/auth/login",
            json={"email": trainer.email, "password": "Wrong#1234", "role": "trainer"},
        )
        self.assertEqual(guess.status_code, 401)
        self.assertEqual(guess.json()["detail"], "Invalid email or password")

        admin = create_trainer(role="admin")
        admin_guess = self.client.post(
            "/auth/login",
            json={"email": admin.email, "password": "Wrong#1234", "role": "trainer"},
        )
        self.assertEqual(admin_guess.status_code, 401)

    def test_login_rate_limit_and_lockout(self) -> None:
        settings = get_settings()
        trainer = create_trainer()

        last_status = None
        for _ in range(settings.login_max_attempts):
            res = self.client.post(
                "/api/v1/auth/login",
                json={"email": trainer.email, "password": "Wrong#1234", "role": "trainer"},
            )
            last_status = res.status_code

        self.assertIn(last_status, [401, 429])

        blocked = self.client.post(
            "/api/v1/auth/login",
            json={"email": trainer.email, "password": STRONG_PASSWORD, "role": "trainer"},
        )
        self.assertEqual(blocked.status_code, 429)

    def test_request_id_header_is_present(self) -> None:
        response = self.client.get("/healthz")
        self.assertIn("X-Request-ID", response.headers)
        self.assertEqual(response.headers["X-Frame-Options"], "DENY")

        echoed = self.client.get("/healthz", headers={"X-Request-ID": "trace-123"})
        self.assertEqual(echoed.headers["X-Request-ID"], "trace-123")

    def test_health_and_readiness_endpoints(self) -> None:
        health = self.client.get("/healthz")
        readiness = self.client.get("/readyz")
        self.assertEqual(health.status_code, 200)
        self.assertEqual(health.json().get("status"), "ok")
        self.assertEqual(readiness.status_code, 200)
        self.assertEqual(readiness.json().get("status"), "ready")
        self.assertTrue(readiness.json()["schemaUpToDate"])

    def test_api_v1_auth_routes_work(self) -> None:
        email = unique_email("apiv1")
        signup = self.client.post(
            "/api/v1/auth/signup",
            json={
                "role": "trainer",
                "email": email,
                "password": STRONG_PASSWORD,
                "confirmPassword": STRONG_PASSWORD,
                "name": "Api Coach",
                "phone": unique_phone(),
            },
        )
        self.client.post("/api/v1/auth/logout")
        login = self.client.post(
            "/api/v1/auth/login",
            json={"email": email, "password": STRONG_PASSWORD, "role": "trainer"},
        )
        self.assertEqual(signup.status_code, 201)
        self.assertEqual(login.status_code, 200)
