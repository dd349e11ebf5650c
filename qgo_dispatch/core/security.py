"""Password utilities for driver and admin login."""
import hmac
from typing import Optional

from passlib.context import CryptContext

# bcrypt for new hashes; "plaintext" lets legacy driver documents that still
# carry the raw password verify, and marks them for upgrade.
pwd_context = CryptContext(schemes=["bcrypt", "plaintext"], deprecated=["plaintext"])


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        Bcrypt hash string
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, stored_password: str) -> bool:
    """Verify a plain password against a stored bcrypt hash or legacy plaintext.

    Args:
        plain_password: User input password
        stored_password: Value from the driver document

    Returns:
        True if password matches, False otherwise
    """
    return pwd_context.verify(plain_password, stored_password)


def needs_rehash(stored_password: str) -> bool:
    """True when the stored value is not a current bcrypt hash."""
    return pwd_context.needs_update(stored_password)


def is_hashed(password: str) -> bool:
    return pwd_context.identify(password) == "bcrypt"


def check_admin_password(expected: Optional[str], supplied: Optional[str]) -> bool:
    """Admin login check; no configured password means role selection is trusted."""
    if not expected:
        return True
    if supplied is None:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), supplied.encode("utf-8"))
