import unittest
from datetime import datetime, timedelta, timezone

import jwt

from calendar_backend.security import (
    ExpiredTokenError,
    InvalidTokenError,
    MalformedTokenError,
    TokenService,
    hash_password,
    verify_password,
)


class PasswordHashingTests(unittest.TestCase):
    def test_hash_and_verify(self):
        digest = hash_password("hunter2", rounds=4)
        self.assertNotEqual(digest, "hunter2")
        self.assertTrue(verify_password("hunter2", digest))
        self.assertFalse(verify_password("hunter3", digest))

    def test_fresh_salt_per_call(self):
        first = hash_password("same", rounds=4)
        second = hash_password("same", rounds=4)
        self.assertNotEqual(first, second)
        self.assertTrue(verify_password("same", first))
        self.assertTrue(verify_password("same", second))

    def test_default_cost_factor(self):
        digest = hash_password("pw")
        self.assertTrue(digest.startswith("$2b$10$"))

    def test_malformed_hash_returns_false(self):
        self.assertFalse(verify_password("pw", "not-a-bcrypt-hash"))


class TokenServiceTests(unittest.TestCase):
    def setUp(self):
        self.tokens = TokenService("test-secret")

    def _at(self, delta: timedelta) -> TokenService:
        issued_at = datetime.now(tz=timezone.utc) + delta
        return TokenService("test-secret", clock=lambda: issued_at)

    def test_issue_and_verify(self):
        token = self.tokens.issue("user-1")
        self.assertEqual(self.tokens.verify(token), "user-1")

    def test_token_expires_after_one_hour(self):
        payload = jwt.decode(
            self.tokens.issue("user-1"), "test-secret", algorithms=["HS256"]
        )
        self.assertEqual(payload["exp"] - payload["iat"], 3600)

    def test_token_valid_just_before_expiry(self):
        token = self._at(timedelta(minutes=-59)).issue("user-1")
        self.assertEqual(self.tokens.verify(token), "user-1")

    def test_expired_token_rejected(self):
        token = self._at(timedelta(hours=-1, seconds=-5)).issue("user-1")
        with self.assertRaises(ExpiredTokenError):
            self.tokens.verify(token)

    def test_wrong_secret_rejected(self):
        token = TokenService("other-secret").issue("user-1")
        with self.assertRaises(InvalidTokenError):
            self.tokens.verify(token)

    def test_garbage_token_is_malformed(self):
        with self.assertRaises(MalformedTokenError):
            self.tokens.verify("not.a.token")

    def test_token_without_subject_is_malformed(self):
        token = jwt.encode(
            {"exp": int(datetime.now(tz=timezone.utc).timestamp()) + 60},
            "test-secret",
            algorithm="HS256",
        )
        with self.assertRaises(MalformedTokenError):
            self.tokens.verify(token)

    def test_non_string_subject_is_malformed(self):
        token = jwt.encode(
            {"sub": 123, "exp": int(datetime.now(tz=timezone.utc).timestamp()) + 60},
            "test-secret",
            algorithm="HS256",
        )
        with self.assertRaises(MalformedTokenError):
            self.tokens.verify(token)

    def test_secret_is_required(self):
        with self.assertRaises(ValueError):
            TokenService("")


if __name__ == "__main__":
    unittest.main()
