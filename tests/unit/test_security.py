"""Tests for qgo_dispatch.core.security module."""
from qgo_dispatch.core.security import (
    check_admin_password,
    get_password_hash,
    is_hashed,
    needs_rehash,
    verify_password,
)


class TestPasswordHashing:

    def test_hash_returns_bcrypt_format(self):
        hashed = get_password_hash("mypassword")
        assert hashed.startswith("$2b$")
        assert is_hashed(hashed) is True

    def test_different_salt_each_time(self):
        assert get_password_hash("mypassword") != get_password_hash("mypassword")

    def test_verify_correct_password(self):
        hashed = get_password_hash("1234")
        assert verify_password("1234", hashed) is True

    def test_verify_wrong_password(self):
        hashed = get_password_hash("1234")
        assert verify_password("wrong", hashed) is False

    def test_fresh_hash_needs_no_rehash(self):
        assert needs_rehash(get_password_hash("1234")) is False


class TestLegacyPlaintext:

    def test_plaintext_still_verifies(self):
        assert verify_password("1234", "1234") is True

    def test_plaintext_wrong_password(self):
        assert verify_password("4321", "1234") is False

    def test_plaintext_marked_for_upgrade(self):
        assert needs_rehash("1234") is True
        assert is_hashed("1234") is False


class TestAdminPassword:

    def test_unset_password_trusts_role_selection(self):
        assert check_admin_password(None, None) is True
        assert check_admin_password("", "anything") is True

    def test_configured_password_must_match(self):
        assert check_admin_password("s3cret", "s3cret") is True
        assert check_admin_password("s3cret", "guess") is False

    def test_configured_password_missing_from_request(self):
        assert check_admin_password("s3cret", None) is False
