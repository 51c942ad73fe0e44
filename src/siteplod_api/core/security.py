"""Caller identity token handling.

Identity tokens are minted by the external identity provider; this service
only verifies them. ``create_identity_token`` exists for the CLI and tests.
"""

from datetime import UTC, datetime, timedelta

import jwt


def create_identity_token(
    subject: str,
    secret_key: str,
    algorithm: str = "HS256",
    expires_minutes: int = 30,
) -> str:
    """Create a signed identity token for ``subject``.

    Args:
        subject: The caller identifier (stored as the site owner).
        secret_key: Secret key for signing.
        algorithm: JWT signing algorithm.
        expires_minutes: Token expiration in minutes.

    Returns:
        The encoded JWT string.
    """
    expire = datetime.now(UTC) + timedelta(minutes=expires_minutes)
    payload = {"sub": subject, "exp": expire, "type": "access"}
    return jwt.encode(payload, secret_key, algorithm=algorithm)


def decode_token(
    token: str,
    secret_key: str,
    algorithm: str = "HS256",
) -> dict:
    """Decode and validate a JWT token.

    Raises:
        jwt.ExpiredSignatureError: If the token has expired.
        jwt.InvalidTokenError: If the token is invalid.
    """
    return jwt.decode(token, secret_key, algorithms=[algorithm])
