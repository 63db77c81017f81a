"""
Readlog Backend - Password Hashing
===================================

What:  One-way salted password hashing and verification with bcrypt.
How:   hash_password() generates a fresh salt per call, so the same password
       never produces the same hash twice. verify_password() delegates to
       bcrypt.checkpw, which compares in constant time.
Who:   UserService (register, update, authenticate).

Both functions are CPU-bound by design (BCRYPT_ROUNDS). Async callers run
them through starlette's run_in_threadpool.

bcrypt only looks at the first 72 bytes of a password; longer input is
truncated explicitly because newer bcrypt releases reject it instead.
"""

import logging
from typing import Optional

import bcrypt

from readlog.config import settings
from readlog.exceptions import HashingError

logger = logging.getLogger(__name__)

BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """Hash a plain-text password; returns the bcrypt hash as text."""
    try:
        salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
        return bcrypt.hashpw(_encode(password), salt).decode("utf-8")
    except (ValueError, TypeError) as e:
        logger.error("bcrypt failed to hash password: %s", type(e).__name__)
        raise HashingError(context={"error_type": type(e).__name__}) from e


def verify_password(password: str, password_hash: str) -> bool:
    """
    Check a plain-text password against a stored bcrypt hash.

    Returns False on mismatch. Raises HashingError only when the stored
    hash is not a valid bcrypt hash.
    """
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
    except (ValueError, TypeError) as e:
        logger.error("Stored password hash is malformed: %s", type(e).__name__)
        raise HashingError(
            message="Stored password hash is invalid",
            context={"error_type": type(e).__name__},
        ) from e
