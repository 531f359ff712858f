"""Session token issuing and decoding.

Two token modes are supported:

* ``mock``: three dot-separated base64 JSON segments with a fixed placeholder
  signature. Anything shaped like a token is accepted, so this mode must not
  face the public internet.
* ``signed``: HS256 JWTs whose signature is checked on every decode.
"""
import base64
import binascii
import json
import logging
import time
from typing import Optional

from jose import JWTError, jwt

from todo_backend.config import Settings
from todo_backend.models import SessionIdentity, User

logger = logging.getLogger(__name__)

MOCK_HEADER = {"alg": "HS256", "typ": "JWT"}
MOCK_SIGNATURE = "mock-signature"


def _b64encode(data: str) -> str:
    return base64.b64encode(data.encode("utf-8")).decode("ascii")


def _b64decode(segment: str) -> str:
    padded = segment + "=" * (-len(segment) % 4)
    return base64.b64decode(padded, validate=True).decode("utf-8")


def _compact(data: dict) -> str:
    return json.dumps(data, separators=(",", ":"))


def create_access_token(user: User, settings: Settings) -> str:
    """Issue a session token for ``user`` valid for the configured lifetime."""
    payload = {
        "id": user.id,
        "email": user.email,
        "exp": time.time() + settings.access_token_expire_minutes * 60,
    }
    if settings.token_mode == "signed":
        return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)
    return ".".join(
        (_b64encode(_compact(MOCK_HEADER)), _b64encode(_compact(payload)), _b64encode(MOCK_SIGNATURE))
    )


def _decode_mock(token: str) -> Optional[dict]:
    parts = token.split(".")
    if len(parts) != 3:
        return None
    try:
        payload = json.loads(_b64decode(parts[1]))
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None
    return payload if isinstance(payload, dict) else None


def _decode_signed(token: str, settings: Settings) -> Optional[dict]:
    try:
        return jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
            options={"verify_exp": settings.enforce_token_expiry},
        )
    except JWTError as e:
        logger.debug(f"JWT verification failed: {e}")
        return None


def decode_token(token: str, settings: Settings) -> Optional[SessionIdentity]:
    """Decode a token into the identity it carries, or None if unusable."""
    if settings.token_mode == "signed":
        payload = _decode_signed(token, settings)
    else:
        payload = _decode_mock(token)
    if payload is None:
        logger.debug("Discarding malformed session token")
        return None

    user_id, email, exp = payload.get("id"), payload.get("email"), payload.get("exp")
    if not isinstance(user_id, str) or not isinstance(email, str):
        logger.debug("Session token payload lacks id/email")
        return None
    if exp is not None and not isinstance(exp, (int, float)):
        return None
    if settings.enforce_token_expiry and (exp is None or exp < time.time()):
        logger.debug(f"Session token for {email} has expired")
        return None
    return SessionIdentity(id=user_id, email=email, exp=exp)
