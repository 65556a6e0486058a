"""
Matchmaker CRM - Credential Store

Stored format: "<derivedKeyHex>.<saltHex>"
- scrypt (N=16384, r=8, p=1), 64-byte derived key
- 16-byte random salt, applied as its hex string
- verification is constant-time and never raises
"""

import hashlib
import hmac
import logging
import re
import secrets

logger = logging.getLogger("credentials")

SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1
KEY_LENGTH = 64
SALT_BYTES = 16

HASH_FORMAT = re.compile(r"^[0-9a-f]{128}\.[0-9a-f]{32}$")


def _derive(password: str, salt: str) -> bytes:
    return hashlib.scrypt(
        password.encode("utf-8"),
        salt=salt.encode("utf-8"),
        n=SCRYPT_N,
        r=SCRYPT_R,
        p=SCRYPT_P,
        dklen=KEY_LENGTH,
    )


def hash_password(password: str) -> str:
    """Hash a password with a fresh random salt."""
    salt = secrets.token_hex(SALT_BYTES)
    return f"{_derive(password, salt).hex()}.{salt}"


def is_valid_hash_format(stored) -> bool:
    """True when `stored` looks like a credential produced by hash_password."""
    return isinstance(stored, str) and HASH_FORMAT.match(stored) is not None


def verify_password(password: str, stored) -> bool:
    """
    Check a password against a stored hash.
    Malformed stored values fail closed (False), nothing is raised.
    """
    if not is_valid_hash_format(stored) or not isinstance(password, str):
        return False
    hashed, salt = stored.split(".")
    try:
        supplied = _derive(password, salt)
    except (ValueError, MemoryError) as e:
        logger.error(f"[CREDENTIALS] scrypt failure: {e}")
        return False
    return hmac.compare_digest(bytes.fromhex(hashed), supplied)


def matches_legacy_plaintext(password: str, stored) -> bool:
    """Constant-time comparison against a legacy plaintext credential."""
    if not isinstance(stored, str) or not isinstance(password, str):
        return False
    return hmac.compare_digest(password.encode("utf-8"), stored.encode("utf-8"))


def generate_strong_password() -> str:
    """24 url-safe characters (18 random bytes)."""
    return secrets.token_urlsafe(18)
