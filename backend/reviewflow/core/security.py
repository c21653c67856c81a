"""Security utilities for review token generation, hashing, and verification."""

import secrets
import hashlib

from reviewflow.config import settings


def generate_review_token(nbytes: int | None = None) -> str:
    """
    Generate a new review link token.

    Args:
        nbytes: Number of random bytes (defaults to REVIEW_TOKEN_BYTES)

    Returns:
        str: URL-safe token with at least 256 bits of entropy by default
    """
    return secrets.token_urlsafe(nbytes or settings.REVIEW_TOKEN_BYTES)


def hash_review_token(token: str) -> str:
    """
    Hash a review token using SHA-256.

    Args:
        token: The plaintext token

    Returns:
        str: SHA-256 hash of the token as hex string
    """
    return hashlib.sha256(token.encode()).hexdigest()

