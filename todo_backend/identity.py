"""Identity & session manager.

Registration, email verification, login/logout and resolution of the
calling user. Every operation either completes fully or raises a
``CoreError`` leaving the database untouched.
"""
import json
import logging
from typing import NamedTuple, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from todo_backend.auth import create_access_token, decode_token
from todo_backend.context import SessionContext
from todo_backend.database import PENDING_VERIFICATION, clear_slot, read_slot, table_lock, write_slot
from todo_backend.errors import (
    Conflict,
    InvalidCode,
    InvalidCredentials,
    InvalidInput,
    NotFound,
    NotVerified,
    Unauthenticated,
)
from todo_backend.models import PendingVerification, SessionIdentity, User
from todo_backend.security import check_password, generate_verification_code, hash_password

logger = logging.getLogger(__name__)


class Registration(NamedTuple):
    user: User
    verification_code: str


def _require(value: str, label: str) -> None:
    if not value or not value.strip():
        raise InvalidInput(f"{label} is required")


def register(session: Session, name: str, email: str, password: str) -> Registration:
    """Create an unverified user and stage its verification code.

    Raises:
        Conflict: a user with this email already exists
        InvalidInput: name, email or password is blank
    """
    _require(name, "Name")
    _require(email, "Email")
    _require(password, "Password")

    hashed = hash_password(password)
    code = generate_verification_code()

    with table_lock("users", "slots"):
        existing = session.exec(select(User).where(User.email == email)).first()
        if existing:
            raise Conflict("User already exists with this email")

        user = User(name=name, email=email, hashed_password=hashed, verification_code=code)
        session.add(user)
        write_slot(session, PENDING_VERIFICATION, json.dumps({"code": code, "email": email}))
        try:
            session.commit()
        except IntegrityError:
            session.rollback()
            raise Conflict("User already exists with this email")
        session.refresh(user)

    logger.info(f"Registered user {user.id} <{email}>")
    return Registration(user=user, verification_code=code)


def verify_email(session: Session, code: str, email: str) -> User:
    """Mark the user as verified when ``code`` matches the stored one.

    Only unverified users are candidates, so verifying twice fails with
    NotFound on the second call.
    """
    with table_lock("users", "slots"):
        user = session.exec(
            select(User).where(User.email == email, User.verified == False)  # noqa: E712
        ).first()
        if not user:
            raise NotFound("User not found")
        if user.verification_code != code:
            raise InvalidCode("Invalid verification code")

        user.verified = True
        user.verification_code = None
        session.add(user)
        clear_slot(session, PENDING_VERIFICATION)
        session.commit()
        session.refresh(user)

    logger.info(f"Verified email for user {user.id}")
    return user


def get_pending_verification(session: Session) -> Optional[PendingVerification]:
    raw = read_slot(session, PENDING_VERIFICATION)
    if raw is None:
        return None
    return PendingVerification.model_validate(json.loads(raw))


def login(session: Session, ctx: SessionContext, email: str, password: str) -> tuple[str, User]:
    """Authenticate and make the new token the context's current session.

    Raises:
        InvalidCredentials: no user with this email/password pair
        NotVerified: the password matched but the email is unverified
    """
    user = session.exec(select(User).where(User.email == email)).first()
    valid, new_hash = check_password(password, user.hashed_password) if user else (False, None)
    if not valid:
        logger.warning(f"Rejected login for <{email}>")
        raise InvalidCredentials("Invalid email or password")
    if not user.verified:
        raise NotVerified("Please verify your email before logging in")

    if new_hash:
        with table_lock("users"):
            user.hashed_password = new_hash
            session.add(user)
            session.commit()
            session.refresh(user)

    token = create_access_token(user, ctx.settings)
    ctx.set_token(token)
    logger.info(f"User {user.id} logged in")
    return token, user


def logout(ctx: SessionContext) -> None:
    ctx.clear()


def current_user(ctx: SessionContext) -> Optional[SessionIdentity]:
    """Who is calling, or None when there is no usable token."""
    token = ctx.token
    if not token:
        return None
    return decode_token(token, ctx.settings)


def require_user(ctx: SessionContext) -> SessionIdentity:
    identity = current_user(ctx)
    if identity is None:
        raise Unauthenticated()
    return identity


def get_profile(session: Session, ctx: SessionContext) -> User:
    identity = require_user(ctx)
    user = session.get(User, identity.id)
    if not user:
        raise NotFound("User not found")
    return user
