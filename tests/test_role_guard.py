"""Role guard behaviour on a minimal app, independent of the real routes."""

import unittest

from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from squadline.api.deps import guarded, require_role
from squadline.core.database import get_db
from squadline.core.errors import register_exception_handlers
from squadline.core.security import issue_token
from tests.support import add_athlete, add_manager, add_user, make_session_factory


def _build_app(session_factory) -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/roster", dependencies=guarded("manager", "assistant_manager"))
    def roster() -> dict:
        return {"ok": True}

    @app.get("/unauthenticated", dependencies=[Depends(require_role("manager"))])
    def unauthenticated() -> dict:
        return {"ok": True}

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    return app


class TestRoleGuard(unittest.TestCase):
    def setUp(self) -> None:
        session_factory = make_session_factory()
        self.db = session_factory()
        self.client = TestClient(_build_app(session_factory))

    def tearDown(self) -> None:
        self.client.close()
        self.db.close()

    def _get(self, path: str, token: str | None = None):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        return self.client.get(path, headers=headers)

    def test_athlete_is_forbidden(self) -> None:
        athlete = add_athlete(self.db)
        r = self._get("/roster", issue_token(athlete.id, "athlete"))
        self.assertEqual(r.status_code, 403)
        self.assertEqual(
            r.json()["error"]["message"],
            "You do not have the necessary permissions to perform this action",
        )

    def test_legacy_manager_is_allowed(self) -> None:
        manager = add_manager(self.db)
        self.assertEqual(self._get("/roster", issue_token(manager.id, "manager")).status_code, 200)

    def test_any_matching_role_is_enough(self) -> None:
        user = add_user(self.db, extra_roles=("manager",))
        self.assertEqual(self._get("/roster", issue_token(user.id, "user")).status_code, 200)

    def test_primary_role_column_counts(self) -> None:
        user = add_user(self.db, email="coach@example.com", role="assistant_manager")
        self.assertEqual(self._get("/roster", issue_token(user.id, "user")).status_code, 200)

    def test_missing_token_is_unauthorized(self) -> None:
        r = self._get("/roster")
        self.assertEqual(r.status_code, 401)
        self.assertEqual(r.json()["error"]["code"], "UNAUTHORIZED")

    def test_guard_without_session_is_unauthorized(self) -> None:
        user = add_user(self.db, extra_roles=("manager",))
        r = self._get("/unauthenticated", issue_token(user.id, "user"))
        self.assertEqual(r.status_code, 401)


if __name__ == "__main__":
    unittest.main()
