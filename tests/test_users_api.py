"""HTTP tests for /api/v1/users, /login and /health using TestClient and an in-memory SQLite database."""

import unittest
from collections.abc import Generator

from fastapi import Depends
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.v1.auth import get_user_service
from app.core.config import Settings, get_settings
from app.core.context import RequestContext
from app.core.database import get_db
from app.main import app
from app.models import Base
from app.repositories.user_repository import UserRepository
from app.schemas.user import UserCreate
from app.services.user_service import UserService

PREFIX = "/api/v1"
PAGE_SIZE_MAX = 50


class ApiTestCase(unittest.TestCase):
    """Wires the app to a throwaway SQLite database; auth disabled unless a subclass says otherwise."""

    auth_enabled = False

    def setUp(self) -> None:
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(self.engine)
        testing_session = sessionmaker(bind=self.engine, autoflush=False)
        test_settings = Settings(
            AUTH_ENABLED=self.auth_enabled,
            PAGE_SIZE_DEFAULT=10,
            PAGE_SIZE_MAX=PAGE_SIZE_MAX,
        )

        def override_get_db() -> Generator[Session, None, None]:
            db = testing_session()
            try:
                yield db
            finally:
                db.close()

        def override_get_user_service(db: Session = Depends(get_db)) -> UserService:
            return UserService(UserRepository(db), max_page_size=PAGE_SIZE_MAX, bcrypt_rounds=4)

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_settings] = lambda: test_settings
        app.dependency_overrides[get_user_service] = override_get_user_service
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()
        self.engine.dispose()

    def _create(self, user_name: str = "alice", **kwargs: object) -> str:
        body = {"user_name": user_name, "real_name": "Test User", "password": "s3cret-pass"}
        body.update(kwargs)
        response = self.client.post(f"{PREFIX}/users", json=body)
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()["record_id"]

    def assertError(self, response, status_code: int, code: str) -> None:
        self.assertEqual(response.status_code, status_code, response.text)
        self.assertEqual(response.json()["error"]["code"], code)
        self.assertTrue(response.json()["error"]["message"])


class TestCreateAndGet(ApiTestCase):
    def test_create_returns_record_id(self) -> None:
        record_id = self._create()
        self.assertEqual(len(record_id), 36)

    def test_get_returns_user_without_password(self) -> None:
        record_id = self._create(role_id="r1")
        response = self.client.get(f"{PREFIX}/users/{record_id}")
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["record_id"], record_id)
        self.assertEqual(data["user_name"], "alice")
        self.assertEqual(data["role_id"], "r1")
        self.assertEqual(data["status"], 1)
        self.assertEqual(data["creator"], "root")
        self.assertNotIn("password", data)
        self.assertNotIn("password_hash", data)

    def test_get_unknown_is_404(self) -> None:
        self.assertError(self.client.get(f"{PREFIX}/users/missing"), 404, "not_found")

    def test_duplicate_user_name_is_400(self) -> None:
        self._create("alice")
        response = self.client.post(
            f"{PREFIX}/users",
            json={"user_name": "alice", "password": "s3cret-pass"},
        )
        self.assertError(response, 400, "invalid_argument")

    def test_missing_password_is_400(self) -> None:
        response = self.client.post(f"{PREFIX}/users", json={"user_name": "alice"})
        self.assertError(response, 400, "invalid_argument")


class TestQueryPage(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        for name in ("alice", "bob", "carol"):
            self._create(name)

    def test_page_shape(self) -> None:
        response = self.client.get(f"{PREFIX}/users", params={"q": "page", "current": 1, "pageSize": 2})
        self.assertEqual(response.status_code, 200, response.text)
        data = response.json()
        self.assertEqual([u["user_name"] for u in data["list"]], ["carol", "bob"])
        self.assertEqual(data["pagination"], {"current": 1, "pageSize": 2, "total": 3})

    def test_default_page_size(self) -> None:
        data = self.client.get(f"{PREFIX}/users", params={"q": "page"}).json()
        self.assertEqual(data["pagination"]["pageSize"], 10)
        self.assertEqual(len(data["list"]), 3)

    def test_filters(self) -> None:
        data = self.client.get(f"{PREFIX}/users", params={"q": "page", "user_name": "ar"}).json()
        self.assertEqual([u["user_name"] for u in data["list"]], ["carol"])
        self.assertEqual(data["pagination"]["total"], 1)

    def test_unknown_query_type_is_400(self) -> None:
        self.assertError(self.client.get(f"{PREFIX}/users"), 400, "invalid_argument")
        self.assertError(self.client.get(f"{PREFIX}/users", params={"q": "all"}), 400, "invalid_argument")

    def test_page_size_over_max_is_400(self) -> None:
        response = self.client.get(f"{PREFIX}/users", params={"q": "page", "pageSize": PAGE_SIZE_MAX + 1})
        self.assertError(response, 400, "invalid_argument")

    def test_non_integer_status_is_400(self) -> None:
        response = self.client.get(f"{PREFIX}/users", params={"q": "page", "status": "abc"})
        self.assertError(response, 400, "invalid_argument")


class TestWrites(ApiTestCase):
    def test_update_ignores_status_and_record_id(self) -> None:
        record_id = self._create("alice")
        self.client.patch(f"{PREFIX}/users/{record_id}/disable")
        response = self.client.put(
            f"{PREFIX}/users/{record_id}",
            json={"user_name": "alice2", "real_name": "New", "status": 1, "record_id": "other"},
        )
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json(), {"status": "OK"})
        data = self.client.get(f"{PREFIX}/users/{record_id}").json()
        self.assertEqual(data["user_name"], "alice2")
        self.assertEqual(data["record_id"], record_id)
        self.assertEqual(data["status"], 2)

    def test_update_unknown_is_404(self) -> None:
        response = self.client.put(f"{PREFIX}/users/missing", json={"user_name": "x"})
        self.assertError(response, 404, "not_found")

    def test_delete_twice(self) -> None:
        record_id = self._create()
        self.assertEqual(self.client.delete(f"{PREFIX}/users/{record_id}").json(), {"status": "OK"})
        self.assertError(self.client.delete(f"{PREFIX}/users/{record_id}"), 404, "not_found")
        self.assertError(self.client.get(f"{PREFIX}/users/{record_id}"), 404, "not_found")

    def test_batch_delete_partial_failure(self) -> None:
        a = self._create("a")
        c = self._create("c")
        response = self.client.delete(f"{PREFIX}/users", params={"batch": f"{a},missing,{c}"})
        self.assertError(response, 404, "not_found")
        self.assertIn("missing", response.json()["error"]["message"])
        self.assertEqual(self.client.get(f"{PREFIX}/users/{a}").status_code, 404)
        self.assertEqual(self.client.get(f"{PREFIX}/users/{c}").status_code, 200)

    def test_batch_delete_empty_is_400(self) -> None:
        self.assertError(self.client.delete(f"{PREFIX}/users", params={"batch": ""}), 400, "invalid_argument")
        self.assertError(self.client.delete(f"{PREFIX}/users", params={"batch": " , "}), 400, "invalid_argument")

    def test_enable_disable(self) -> None:
        record_id = self._create()
        self.assertEqual(self.client.patch(f"{PREFIX}/users/{record_id}/disable").status_code, 200)
        self.assertEqual(self.client.get(f"{PREFIX}/users/{record_id}").json()["status"], 2)
        for _ in range(2):
            self.assertEqual(self.client.patch(f"{PREFIX}/users/{record_id}/enable").json(), {"status": "OK"})
        self.assertEqual(self.client.get(f"{PREFIX}/users/{record_id}").json()["status"], 1)

    def test_enable_unknown_is_404(self) -> None:
        self.assertError(self.client.patch(f"{PREFIX}/users/missing/enable"), 404, "not_found")


class TestAuthEnabled(ApiTestCase):
    auth_enabled = True

    def setUp(self) -> None:
        super().setUp()
        # Seed directly through the service; the HTTP create route needs a token now.
        db = sessionmaker(bind=self.engine)()
        try:
            service = UserService(UserRepository(db), bcrypt_rounds=4)
            user = service.create(
                RequestContext(),
                UserCreate(user_name="admin", password="admin-pass-123"),
            )
            self.admin_id = user.record_id
        finally:
            db.close()

    def _login(self, user_name: str = "admin", password: str = "admin-pass-123"):
        return self.client.post(f"{PREFIX}/login", json={"user_name": user_name, "password": password})

    def test_requires_token(self) -> None:
        response = self.client.get(f"{PREFIX}/users", params={"q": "page"})
        self.assertError(response, 401, "unauthenticated")

    def test_invalid_token(self) -> None:
        response = self.client.get(
            f"{PREFIX}/users",
            params={"q": "page"},
            headers={"Authorization": "Bearer not-a-jwt"},
        )
        self.assertError(response, 401, "unauthenticated")

    def test_login_and_use_token(self) -> None:
        response = self._login()
        self.assertEqual(response.status_code, 200, response.text)
        token = response.json()["access_token"]
        headers = {"Authorization": f"Bearer {token}"}
        created = self.client.post(
            f"{PREFIX}/users",
            json={"user_name": "bob", "password": "bob-pass-123"},
            headers=headers,
        )
        self.assertEqual(created.status_code, 200, created.text)
        data = self.client.get(f"{PREFIX}/users/{created.json()['record_id']}", headers=headers).json()
        self.assertEqual(data["creator"], self.admin_id)

    def test_wrong_password(self) -> None:
        self.assertError(self._login(password="wrong-password"), 401, "unauthenticated")

    def test_disabled_user_cannot_log_in(self) -> None:
        token = self._login().json()["access_token"]
        headers = {"Authorization": f"Bearer {token}"}
        self.client.post(
            f"{PREFIX}/users",
            json={"user_name": "bob", "password": "bob-pass-123"},
            headers=headers,
        )
        page = self.client.get(f"{PREFIX}/users", params={"q": "page", "user_name": "bob"}, headers=headers).json()
        bob_id = page["list"][0]["record_id"]
        self.client.patch(f"{PREFIX}/users/{bob_id}/disable", headers=headers)
        self.assertError(self._login("bob", "bob-pass-123"), 403, "forbidden")


class TestHealth(ApiTestCase):
    def test_health(self) -> None:
        response = self.client.get(f"{PREFIX}/health/")
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["status"], "ok")
        self.assertEqual(data["database"], "connected")
        self.assertFalse(data["auth_enabled"])


if __name__ == "__main__":
    unittest.main()
