"""HTTP tests for /api/auth: login, session, sliding refresh, registration and admin listing."""

import unittest
from datetime import UTC, datetime, timedelta

from squadline.core.security import issue_token, verify_token
from squadline.models import User
from tests.support import (
    add_athlete,
    add_team,
    add_user,
    make_client,
    make_session_factory,
    reset_overrides,
)


class ApiTestCase(unittest.TestCase):
    max_attempts = 10

    def setUp(self) -> None:
        self.session_factory = make_session_factory()
        self.db = self.session_factory()
        self.client = make_client(self.session_factory, max_attempts=self.max_attempts)

    def tearDown(self) -> None:
        self.client.close()
        self.db.close()
        reset_overrides()

    def bearer(self, token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}


class TestLogin(ApiTestCase):
    def test_login_returns_token_cookie_and_profile(self) -> None:
        user = add_user(self.db, first_name="Pat", last_name="Lee")
        r = self.client.post(
            "/api/auth/login",
            json={"email": "player@example.com", "password": "correct-horse"},
        )
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["redirectUrl"], "/dashboard")
        claims = verify_token(body["token"])
        self.assertEqual(claims["userId"], user.id)
        self.assertEqual(claims["role"], "user")
        self.assertEqual(r.cookies.get("auth_token"), body["token"])
        self.assertEqual(body["user"]["firstName"], "Pat")
        self.assertNotIn("password", body["user"])

    def test_legacy_athlete_login_carries_origin_tag(self) -> None:
        athlete = add_athlete(self.db)
        r = self.client.post(
            "/api/auth/login",
            json={"email": "athlete@example.com", "password": "athlete-pass"},
        )
        self.assertEqual(r.status_code, 200)
        claims = verify_token(r.json()["token"])
        self.assertEqual((claims["userId"], claims["role"]), (athlete.id, "athlete"))
        self.assertEqual(r.json()["user"]["role"], "athlete")

    def test_unknown_email_and_wrong_password_give_identical_responses(self) -> None:
        add_user(self.db)
        unknown = self.client.post(
            "/api/auth/login", json={"email": "ghost@example.com", "password": "whatever"}
        )
        wrong = self.client.post(
            "/api/auth/login", json={"email": "player@example.com", "password": "nope-nope"}
        )
        self.assertEqual(unknown.status_code, 401)
        self.assertEqual(wrong.status_code, 401)
        self.assertEqual(unknown.json(), wrong.json())
        self.assertEqual(wrong.json()["error"]["code"], "INVALID_CREDENTIALS")

    def test_missing_fields(self) -> None:
        r = self.client.post("/api/auth/login", json={"email": "player@example.com"})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(
            r.json(),
            {
                "success": False,
                "error": {"message": "Email and password are required", "code": "MISSING_CREDENTIALS"},
            },
        )


class TestLoginRateLimit(ApiTestCase):
    max_attempts = 2

    def test_blocks_after_repeated_attempts(self) -> None:
        add_user(self.db)
        payload = {"email": "player@example.com", "password": "wrong-one"}
        codes = [self.client.post("/api/auth/login", json=payload).status_code for _ in range(3)]
        self.assertEqual(codes, [401, 401, 429])
        blocked = self.client.post(
            "/api/auth/login", json={"email": "player@example.com", "password": "correct-horse"}
        )
        self.assertEqual(blocked.status_code, 429)
        self.assertEqual(blocked.json()["error"]["code"], "AUTH_RATE_LIMIT")

    def test_success_resets_counter(self) -> None:
        add_user(self.db)
        self.client.post("/api/auth/login", json={"email": "player@example.com", "password": "bad-pass"})
        ok = self.client.post(
            "/api/auth/login", json={"email": "player@example.com", "password": "correct-horse"}
        )
        self.assertEqual(ok.status_code, 200)
        again = self.client.post(
            "/api/auth/login", json={"email": "player@example.com", "password": "bad-pass"}
        )
        self.assertEqual(again.status_code, 401)


class TestSession(ApiTestCase):
    def test_me_with_bearer_header(self) -> None:
        user = add_user(self.db, first_name="Pat", extra_roles=("manager",))
        token = issue_token(user.id, "user")
        r = self.client.get("/api/auth/me", headers=self.bearer(token))
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertEqual(body["id"], user.id)
        self.assertEqual(body["firstName"], "Pat")
        self.assertEqual(body["roles"], ["user", "manager"])
        self.assertEqual(body["origin"], "user")

    def test_me_with_cookie_after_login(self) -> None:
        add_user(self.db)
        self.client.post(
            "/api/auth/login", json={"email": "player@example.com", "password": "correct-horse"}
        )
        r = self.client.get("/api/auth/me")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["email"], "player@example.com")

    def test_header_takes_precedence_over_cookie(self) -> None:
        add_user(self.db, email="first@example.com")
        second = add_user(self.db, email="second@example.com")
        self.client.post(
            "/api/auth/login", json={"email": "first@example.com", "password": "correct-horse"}
        )
        r = self.client.get("/api/auth/me", headers=self.bearer(issue_token(second.id, "user")))
        self.assertEqual(r.json()["id"], second.id)

    def test_team_principal(self) -> None:
        team = add_team(self.db, name="Hill United", email="hill@example.com", password="team-pass")
        r = self.client.get("/api/auth/me", headers=self.bearer(issue_token(team.id, "team")))
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["roles"], ["team"])
        self.assertEqual(r.json()["firstName"], "Hill United")

    def test_no_token(self) -> None:
        r = self.client.get("/api/auth/me")
        self.assertEqual(r.status_code, 401)
        self.assertEqual(r.json()["error"]["code"], "UNAUTHORIZED")
        self.assertEqual(r.headers["www-authenticate"], "Bearer")

    def test_expired_token(self) -> None:
        user = add_user(self.db)
        token = issue_token(user.id, "user", now=datetime.now(UTC) - timedelta(days=8))
        r = self.client.get("/api/auth/me", headers=self.bearer(token))
        self.assertEqual(r.status_code, 401)
        self.assertEqual(r.json()["error"]["code"], "TOKEN_EXPIRED")

    def test_invalid_token(self) -> None:
        r = self.client.get("/api/auth/me", headers=self.bearer("garbage.token.value"))
        self.assertEqual(r.status_code, 401)
        self.assertEqual(r.json()["error"]["code"], "UNAUTHORIZED")

    def test_deleted_user_is_rejected(self) -> None:
        user = add_user(self.db)
        token = issue_token(user.id, "user")
        self.db.delete(user)
        self.db.commit()
        r = self.client.get("/api/auth/me", headers=self.bearer(token))
        self.assertEqual(r.status_code, 401)
        self.assertEqual(r.json()["error"]["message"], "User no longer exists")

    def test_logout_clears_cookie(self) -> None:
        add_user(self.db)
        self.client.post(
            "/api/auth/login", json={"email": "player@example.com", "password": "correct-horse"}
        )
        r = self.client.post("/api/auth/logout")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["message"], "Logged out successfully")
        set_cookie = r.headers["set-cookie"]
        self.assertIn("auth_token=", set_cookie)
        self.assertIn("Max-Age=0", set_cookie)

    def test_logout_requires_session(self) -> None:
        self.assertEqual(self.client.post("/api/auth/logout").status_code, 401)


class TestSlidingRefresh(ApiTestCase):
    def test_near_expiry_token_is_reissued(self) -> None:
        user = add_user(self.db)
        issued = datetime.now(UTC) - timedelta(days=6, hours=1)
        old = issue_token(user.id, "user", now=issued)
        r = self.client.get("/api/auth/me", headers=self.bearer(old))
        self.assertEqual(r.status_code, 200)

        new = r.headers.get("X-Auth-Token")
        self.assertIsNotNone(new)
        self.assertEqual(r.cookies.get("auth_token"), new)
        old_claims, new_claims = verify_token(old), verify_token(new)
        self.assertGreater(new_claims["exp"], old_claims["exp"])
        self.assertEqual(new_claims["userId"], user.id)
        self.assertEqual(new_claims["role"], "user")

    def test_fresh_token_is_not_reissued(self) -> None:
        user = add_user(self.db)
        r = self.client.get("/api/auth/me", headers=self.bearer(issue_token(user.id, "user")))
        self.assertEqual(r.status_code, 200)
        self.assertNotIn("X-Auth-Token", r.headers)
        self.assertNotIn("set-cookie", r.headers)

    def test_state_changing_requests_are_not_refreshed(self) -> None:
        user = add_user(self.db, role="organizer")
        issued = datetime.now(UTC) - timedelta(days=6, hours=1)
        r = self.client.post(
            "/api/leagues",
            json={"name": "Sunday League"},
            headers=self.bearer(issue_token(user.id, "user", now=issued)),
        )
        self.assertEqual(r.status_code, 201)
        self.assertNotIn("X-Auth-Token", r.headers)


class TestRegistration(ApiTestCase):
    def test_check_email(self) -> None:
        add_athlete(self.db, email="taken@example.com")
        r = self.client.get("/api/auth/check-email", params={"email": "Taken@example.com"})
        self.assertEqual(r.json(), {"exists": True})
        r = self.client.get("/api/auth/check-email", params={"email": "free@example.com"})
        self.assertEqual(r.json(), {"exists": False})
        r = self.client.get("/api/auth/check-email", params={"email": "not-an-email"})
        self.assertEqual(r.status_code, 400)

    def test_register_creates_hashed_user_with_role_row(self) -> None:
        r = self.client.post(
            "/api/auth/register",
            json={"email": "New@Example.com", "password": "secret-123", "role": "manager"},
        )
        self.assertEqual(r.status_code, 201)
        self.assertEqual(r.json()["email"], "new@example.com")
        user = self.db.query(User).filter(User.email == "new@example.com").one()
        self.assertNotEqual(user.password, "secret-123")
        self.assertEqual([role.name for role in user.roles], ["manager"])

        login = self.client.post(
            "/api/auth/login", json={"email": "new@example.com", "password": "secret-123"}
        )
        self.assertEqual(login.status_code, 200)

    def test_register_rejects_used_email_and_admin_role(self) -> None:
        add_team(self.db, email="club@example.com", password="team-pass")
        dup = self.client.post(
            "/api/auth/register", json={"email": "club@example.com", "password": "secret-123"}
        )
        self.assertEqual(dup.status_code, 409)
        self.assertEqual(dup.json()["error"]["code"], "EMAIL_IN_USE")
        admin = self.client.post(
            "/api/auth/register",
            json={"email": "sneaky@example.com", "password": "secret-123", "role": "admin"},
        )
        self.assertEqual(admin.status_code, 400)
        self.assertEqual(admin.json()["error"]["code"], "VALIDATION_ERROR")

    def test_register_athlete_signs_in(self) -> None:
        r = self.client.post(
            "/api/auth/register/athlete",
            json={
                "firstName": "Ana",
                "lastName": "Silva",
                "email": "ana@example.com",
                "password": "secret-123",
                "dob": "2001-04-02",
                "height": 171.5,
                "position": "MD",
                "country": "Portugal",
            },
        )
        self.assertEqual(r.status_code, 201)
        body = r.json()
        self.assertEqual(body["user"]["role"], "athlete")
        self.assertEqual(body["user"]["position"], "MD")
        claims = verify_token(body["token"])
        self.assertEqual(claims["role"], "user")
        me = self.client.get("/api/auth/me")
        self.assertEqual(me.json()["roles"], ["athlete"])


class TestAdminUsers(ApiTestCase):
    def test_non_admin_forbidden(self) -> None:
        user = add_user(self.db)
        r = self.client.get("/api/auth/users", headers=self.bearer(issue_token(user.id, "user")))
        self.assertEqual(r.status_code, 403)
        self.assertEqual(r.json()["error"]["code"], "FORBIDDEN")

    def test_admin_via_join_row(self) -> None:
        admin = add_user(self.db, email="boss@example.com", extra_roles=("admin",))
        add_user(self.db, email="player@example.com")
        r = self.client.get("/api/auth/users", headers=self.bearer(issue_token(admin.id, "user")))
        self.assertEqual(r.status_code, 200)
        users = r.json()["users"]
        self.assertEqual([u["email"] for u in users], ["boss@example.com", "player@example.com"])
        self.assertEqual(users[0]["roles"], ["user", "admin"])
        self.assertTrue(all("password" not in u for u in users))

    def test_legacy_athlete_token_is_not_admin(self) -> None:
        athlete = add_athlete(self.db)
        r = self.client.get(
            "/api/auth/users", headers=self.bearer(issue_token(athlete.id, "athlete"))
        )
        self.assertEqual(r.status_code, 403)


if __name__ == "__main__":
    unittest.main()
