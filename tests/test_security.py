"""Unit tests for flowiq.core.security: bcrypt hashing and verification."""

import unittest

from flowiq.core.security import hash_password, verify_password
from support import fast_bcrypt


class TestHashPassword(unittest.TestCase):
    """hash_password produces salted bcrypt hashes."""

    def setUp(self) -> None:
        patcher = fast_bcrypt()
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_hash_is_not_plaintext(self) -> None:
        hashed = hash_password("s3cret-password")
        self.assertNotIn("s3cret-password", hashed)
        self.assertTrue(hashed.startswith("$2"))

    def test_same_password_hashes_differently(self) -> None:
        self.assertNotEqual(hash_password("same-password"), hash_password("same-password"))


class TestVerifyPassword(unittest.TestCase):
    """verify_password returns a bool and never raises for bad input."""

    def setUp(self) -> None:
        patcher = fast_bcrypt()
        patcher.start()
        self.addCleanup(patcher.stop)
        self.hashed = hash_password("s3cret-password")

    def test_correct_password(self) -> None:
        self.assertTrue(verify_password("s3cret-password", self.hashed))

    def test_wrong_password(self) -> None:
        self.assertFalse(verify_password("wrong-password", self.hashed))

    def test_malformed_hash_returns_false(self) -> None:
        self.assertFalse(verify_password("s3cret-password", "not-a-bcrypt-hash"))
        self.assertFalse(verify_password("s3cret-password", "\u00e9t\u00e9"))

    def test_long_password_truncated_consistently(self) -> None:
        long_pw = "x" * 100
        hashed = hash_password(long_pw)
        self.assertTrue(verify_password(long_pw, hashed))
        # bytes past the bcrypt limit do not change the result
        self.assertTrue(verify_password("x" * 72 + "different-tail", hashed))


if __name__ == "__main__":
    unittest.main()
