import unittest
from datetime import datetime, timedelta, timezone

from portal_backend.app import create_app
from portal_backend.auth import (
    authenticate,
    create_access_token,
    decode_access_token,
    ensure_admin,
    hash_password,
    token_url,
    verify_password,
)
from portal_backend.config import Settings, get_settings
from portal_backend.db import AccountRecord, InMemoryDbClient


class PasswordTests(unittest.TestCase):
    def test_hash_and_verify(self):
        hashed = hash_password("secret123")
        self.assertNotEqual(hashed, "secret123")
        self.assertTrue(hashed.startswith("$argon2"))
        self.assertTrue(verify_password("secret123", hashed))
        self.assertFalse(verify_password("secret124", hashed))


class TokenTests(unittest.TestCase):
    def setUp(self):
        self.settings = Settings(PORTAL_SECRET_KEY="test-secret", access_token_expire_minutes=30)
        self.account = AccountRecord(email="admin@example.com", password_hash="x")

    def test_roundtrip(self):
        token = create_access_token(self.account, self.settings)
        payload = decode_access_token(token, self.settings)
        self.assertEqual(payload["sub"], self.account.id)
        self.assertEqual(payload["email"], "admin@example.com")

    def test_expired_token_is_rejected(self):
        issued = datetime.now(timezone.utc) - timedelta(hours=1)
        token = create_access_token(self.account, self.settings, now=issued)
        self.assertIsNone(decode_access_token(token, self.settings))

    def test_wrong_secret_is_rejected(self):
        token = create_access_token(self.account, self.settings)
        other = Settings(PORTAL_SECRET_KEY="another-secret")
        self.assertIsNone(decode_access_token(token, other))


class TokenUrlTests(unittest.TestCase):
    def test_follows_api_prefix(self):
        self.assertEqual(token_url(Settings(api_prefix="/api")), "/api/auth/login")
        self.assertEqual(token_url(Settings(api_prefix="/portal/v1/")), "/portal/v1/auth/login")

    def test_openapi_advertises_mounted_login_route(self):
        schema = create_app().openapi()
        flows = schema["components"]["securitySchemes"]["OAuth2PasswordBearer"]["flows"]
        login_path = flows["password"]["tokenUrl"]
        self.assertEqual(login_path, token_url(get_settings()))
        self.assertIn(login_path, schema["paths"])


class EnsureAdminTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()

    def test_creates_account_and_admin(self):
        self.assertEqual(ensure_admin(self.db, "Admin@Example.com", "secret123"), "created")
        self.assertTrue(self.db.is_admin("admin@example.com"))
        self.assertIsNotNone(authenticate(self.db, "admin@example.com", "secret123"))
        self.assertIsNone(authenticate(self.db, "admin@example.com", "nope"))
        self.assertIsNone(authenticate(self.db, "ghost@example.com", "secret123"))

    def test_second_call_reports_exists(self):
        ensure_admin(self.db, "admin@example.com", "secret123")
        self.assertEqual(ensure_admin(self.db, "admin@example.com", "changed"), "exists")
        self.assertEqual(len(self.db.list_admins()), 1)

    def test_existing_account_keeps_password(self):
        self.db.create_account("clerk@example.com", hash_password("original"))
        self.assertEqual(ensure_admin(self.db, "clerk@example.com", "ignored"), "created")
        self.assertIsNotNone(authenticate(self.db, "clerk@example.com", "original"))
        self.assertIsNone(authenticate(self.db, "clerk@example.com", "ignored"))


if __name__ == "__main__":
    unittest.main()
