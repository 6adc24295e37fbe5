"""Tests for flowiq.client.auth_context.AuthContext driven against the real app."""

import unittest
from unittest.mock import MagicMock

import httpx

from flowiq.client.auth_context import AuthClientError, AuthContext
from flowiq.core.rbac import Role
from flowiq.main import app
from support import PASSWORD, client_for, fast_bcrypt, memory_session_factory, seed_user


class AuthContextTestCase(unittest.TestCase):
    def setUp(self) -> None:
        patcher = fast_bcrypt()
        patcher.start()
        self.addCleanup(patcher.stop)
        self.factory = memory_session_factory()
        self.client = client_for(self.factory)
        self.addCleanup(app.dependency_overrides.clear)
        self.navigate = MagicMock()
        self.ctx = AuthContext(self.client, navigate=self.navigate)


class TestInitialState(AuthContextTestCase):
    def test_refresh_when_signed_out(self) -> None:
        self.assertTrue(self.ctx.loading)
        self.assertIsNone(self.ctx.refresh())
        self.assertFalse(self.ctx.loading)
        self.assertFalse(self.ctx.is_authenticated)
        self.assertFalse(self.ctx.has_permission("cash-flow.view"))
        self.assertEqual(self.ctx.allowed_routes(), [])


class TestLoginFlow(AuthContextTestCase):
    def test_login_navigates_to_role_landing_page(self) -> None:
        cases = [
            ("admin@example.com", Role.ADMIN, "/admin/users"),
            ("mgr@example.com", Role.MANAGER, "/cash-flow/dashboard"),
            ("acc@example.com", Role.ACCOUNTANT, "/cash-flow/dashboard"),
            ("inv@example.com", Role.INVENTORY_MANAGER, "/inventory/dashboard"),
            ("view@example.com", Role.VIEWER, "/dashboard"),
        ]
        for email, role, path in cases:
            with self.subTest(role=role):
                seed_user(self.factory, email, role)
                user = self.ctx.login(email, PASSWORD)
                self.assertEqual(user.role, role)
                self.assertEqual(self.ctx.location, path)
                self.navigate.assert_called_with(path)
                self.ctx.logout()

    def test_login_failure_sets_error(self) -> None:
        with self.assertRaises(AuthClientError) as ctx:
            self.ctx.login("nobody@example.com", PASSWORD)
        self.assertEqual(ctx.exception.status_code, 401)
        self.assertEqual(ctx.exception.message, "Invalid email or password")
        self.assertEqual(self.ctx.error, "Invalid email or password")
        self.assertIsNone(self.ctx.user)
        self.navigate.assert_not_called()

    def test_refresh_after_login_syncs_from_server(self) -> None:
        seed_user(self.factory, "sync@example.com", Role.ACCOUNTANT)
        self.ctx.login("sync@example.com", PASSWORD)
        fresh = AuthContext(self.client)
        self.assertEqual(fresh.refresh().email, "sync@example.com")
        self.assertTrue(fresh.has_permission("cash-flow.forecast"))
        self.assertFalse(fresh.has_permission("inventory.view"))

    def test_allowed_routes_follow_role(self) -> None:
        seed_user(self.factory, "nav@example.com", Role.INVENTORY_MANAGER)
        self.ctx.login("nav@example.com", PASSWORD)
        routes = self.ctx.allowed_routes()
        self.assertIn("/inventory/orders", routes)
        self.assertIn("/dashboard", routes)
        self.assertNotIn("/cash-flow/forecast", routes)
        self.assertNotIn("/admin", routes)


class TestRegisterLogoutUpdate(AuthContextTestCase):
    def test_register_auto_logs_in(self) -> None:
        user = self.ctx.register("fresh@example.com", PASSWORD, name="Fresh")
        self.assertEqual(user.email, "fresh@example.com")
        self.assertEqual(user.name, "Fresh")
        self.assertEqual(self.ctx.location, "/dashboard")
        self.assertIsNotNone(self.ctx.refresh())

    def test_register_duplicate(self) -> None:
        seed_user(self.factory, "taken@example.com")
        with self.assertRaises(AuthClientError) as ctx:
            self.ctx.register("taken@example.com", PASSWORD)
        self.assertEqual(ctx.exception.status_code, 409)
        self.assertEqual(self.ctx.error, "Email already exists")

    def test_logout_clears_user(self) -> None:
        seed_user(self.factory, "bye@example.com")
        self.ctx.login("bye@example.com", PASSWORD)
        self.ctx.logout()
        self.assertIsNone(self.ctx.user)
        self.assertEqual(self.ctx.location, "/login")
        self.assertIsNone(self.ctx.refresh())

    def test_update_user(self) -> None:
        seed_user(self.factory, "upd@example.com", name="Old")
        self.ctx.login("upd@example.com", PASSWORD)
        user = self.ctx.update_user(name="New")
        self.assertEqual(user.name, "New")
        self.assertEqual(self.ctx.user.name, "New")


class TestTransportErrors(unittest.TestCase):
    def test_network_error_is_auth_client_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.Client(base_url="http://flowiq.test", transport=httpx.MockTransport(handler))
        ctx = AuthContext(client)
        with self.assertRaises(AuthClientError):
            ctx.login("a@example.com", PASSWORD)
        self.assertIsNone(ctx.refresh())

    def test_non_json_error_body_uses_fallback(self) -> None:
        client = httpx.Client(
            base_url="http://flowiq.test",
            transport=httpx.MockTransport(lambda request: httpx.Response(502, text="Bad Gateway")),
        )
        with self.assertRaises(AuthClientError) as ctx:
            AuthContext(client).login("a@example.com", PASSWORD)
        self.assertEqual(ctx.exception.message, "Login failed")
        self.assertEqual(ctx.exception.status_code, 502)

    def test_non_json_success_body_means_signed_out(self) -> None:
        client = httpx.Client(
            base_url="http://flowiq.test",
            transport=httpx.MockTransport(
                lambda request: httpx.Response(200, text="<html>proxy</html>")
            ),
        )
        ctx = AuthContext(client)
        self.assertIsNone(ctx.refresh())
        self.assertFalse(ctx.loading)
        with self.assertRaises(AuthClientError) as raised:
            ctx.login("a@example.com", PASSWORD)
        self.assertEqual(raised.exception.message, "Login failed")
        self.assertEqual(ctx.error, "Login failed")
        self.assertIsNone(ctx.user)

    def test_success_body_without_user_means_signed_out(self) -> None:
        client = httpx.Client(
            base_url="http://flowiq.test",
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"ok": True})),
        )
        ctx = AuthContext(client)
        self.assertIsNone(ctx.refresh())
        with self.assertRaises(AuthClientError):
            ctx.update_user(name="x")

    def test_malformed_user_object_means_signed_out(self) -> None:
        client = httpx.Client(
            base_url="http://flowiq.test",
            transport=httpx.MockTransport(
                lambda request: httpx.Response(200, json={"user": {"id": "not-a-number"}})
            ),
        )
        self.assertIsNone(AuthContext(client).refresh())


if __name__ == "__main__":
    unittest.main()
