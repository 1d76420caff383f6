"""
Admin authentication.

Password check for the admin login and HMAC-signed, expiring session
tokens validated on every administrative call.
"""

import hashlib
import hmac
import logging
import time
from typing import Optional

import config.settings as settings

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Raised when an admin call carries no valid session."""


class ConfigurationError(Exception):
    """Raised when a required secret is not configured."""


def verify_password(candidate: Optional[str], expected: Optional[str]) -> bool:
    """
    Constant-time comparison of a login attempt against the admin password.

    Raises:
        ConfigurationError: If no admin password is configured
    """
    if not expected:
        logger.error("ADMIN_PASSWORD not set in environment variables")
        raise ConfigurationError("Admin password not configured")
    if not candidate:
        return False
    return hmac.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))


def _sign(expires_at: int, secret: str) -> str:
    return hmac.new(
        secret.encode("utf-8"),
        str(expires_at).encode("ascii"),
        hashlib.sha256
    ).hexdigest()


def issue_session_token(
    secret: str,
    now: Optional[float] = None,
    ttl: int = settings.SESSION_DURATION_SECONDS
) -> str:
    """
    Create a session token of the form "<expiry_epoch>.<signature>".

    Args:
        secret: Server-side signing secret
        now: Current epoch seconds (defaults to time.time())
        ttl: Token lifetime in seconds
    """
    if not secret:
        raise ConfigurationError("Session secret not configured")
    issued = time.time() if now is None else now
    expires_at = int(issued) + ttl
    return f"{expires_at}.{_sign(expires_at, secret)}"


def verify_session_token(
    token: Optional[str],
    secret: str,
    now: Optional[float] = None
) -> bool:
    """Check signature and expiry. Malformed tokens are simply invalid."""
    if not token or not secret:
        return False

    expiry_part, _, signature = token.partition(".")
    try:
        expires_at = int(expiry_part)
    except ValueError:
        return False

    if not hmac.compare_digest(signature.encode("utf-8"), _sign(expires_at, secret).encode("ascii")):
        logger.warning("Rejected session token with bad signature")
        return False

    current = time.time() if now is None else now
    if current >= expires_at:
        logger.info("Rejected expired session token")
        return False
    return True


def require_session(token: Optional[str], secret: str) -> None:
    """Raise AuthenticationError unless the token is valid."""
    if not verify_session_token(token, secret):
        raise AuthenticationError("Unauthorized")
