"""API tests for admin user management under /api/v1/users."""

import unittest

from flowiq.core.rbac import Role
from flowiq.core.session import issue_token
from flowiq.main import app
from support import PASSWORD, client_for, fast_bcrypt, memory_session_factory, seed_user


class UsersApiTestCase(unittest.TestCase):
    def setUp(self) -> None:
        patcher = fast_bcrypt()
        patcher.start()
        self.addCleanup(patcher.stop)
        self.factory = memory_session_factory()
        self.client = client_for(self.factory)
        self.addCleanup(app.dependency_overrides.clear)
        self.admin = seed_user(self.factory, "admin@example.com", Role.ADMIN, name="Admin")
        self.staff = seed_user(self.factory, "staff@example.com", Role.VIEWER, name="Staff")

    def sign_in(self, email: str) -> None:
        response = self.client.post("/auth/login", json={"email": email, "password": PASSWORD})
        self.assertEqual(response.status_code, 200)


class TestAdminAccess(UsersApiTestCase):
    def test_list_users(self) -> None:
        self.sign_in("admin@example.com")
        response = self.client.get("/api/v1/users")
        self.assertEqual(response.status_code, 200)
        users = response.json()["users"]
        self.assertEqual([u["email"] for u in users], ["admin@example.com", "staff@example.com"])
        for u in users:
            self.assertNotIn("password_hash", u)

    def test_create_user_with_role(self) -> None:
        self.sign_in("admin@example.com")
        response = self.client.post(
            "/api/v1/users",
            json={"email": "acc@example.com", "password": PASSWORD, "role": "accountant"},
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["user"]["role"], "accountant")

    def test_create_user_invalid_role(self) -> None:
        self.sign_in("admin@example.com")
        response = self.client.post(
            "/api/v1/users",
            json={"email": "x@example.com", "password": PASSWORD, "role": "superuser"},
        )
        self.assertEqual(response.status_code, 400)

    def test_get_user(self) -> None:
        self.sign_in("admin@example.com")
        response = self.client.get(f"/api/v1/users/{self.staff.id}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["user"]["email"], "staff@example.com")
        self.assertEqual(self.client.get("/api/v1/users/9999").status_code, 404)

    def test_change_role_takes_effect_on_api_immediately(self) -> None:
        self.sign_in("admin@example.com")
        response = self.client.put(
            f"/api/v1/users/{self.staff.id}", json={"role": "inventory_manager"}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["user"]["role"], "inventory_manager")

    def test_delete_user(self) -> None:
        self.sign_in("admin@example.com")
        response = self.client.delete(f"/api/v1/users/{self.staff.id}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.client.get(f"/api/v1/users/{self.staff.id}").status_code, 404)

    def test_cannot_delete_self(self) -> None:
        self.sign_in("admin@example.com")
        response = self.client.delete(f"/api/v1/users/{self.admin.id}")
        self.assertEqual(response.status_code, 400)


class TestNonAdminAccess(UsersApiTestCase):
    def test_viewer_redirected_by_gate(self) -> None:
        self.sign_in("staff@example.com")
        response = self.client.get("/api/v1/users", follow_redirects=False)
        self.assertEqual(response.status_code, 307)
        self.assertEqual(response.headers["location"], "/dashboard")

    def test_stale_token_role_is_rechecked_against_database(self) -> None:
        # Token claims admin, but the stored role is viewer: the gate lets the
        # request through on the claim, the endpoint denies on the stored role.
        self.client.cookies.set(
            "auth_token", issue_token(self.staff.id, "staff@example.com", Role.ADMIN)
        )
        response = self.client.post(
            "/api/v1/users",
            json={"email": "sneaky@example.com", "password": PASSWORD, "role": "admin"},
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json(), {"detail": "Permission denied"})


if __name__ == "__main__":
    unittest.main()
