from fastapi import APIRouter, Depends, HTTPException, status

from todo_backend import identity
from todo_backend.database import SessionDep
from todo_backend.dependencies import ContextDep, SettingsDep, simulate_latency
from todo_backend.models import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    PendingVerification,
    ProfileResponse,
    RegisterRequest,
    RegisterResponse,
    UserMessageResponse,
    UserRead,
    VerifyEmailRequest,
)

router = APIRouter(prefix="/auth", tags=["auth"], dependencies=[Depends(simulate_latency)])


def _user_read(user) -> UserRead:
    return UserRead(id=user.id, email=user.email)


@router.post("/register", response_model=RegisterResponse, status_code=201)
def register(data: RegisterRequest, session: SessionDep, settings: SettingsDep):
    """Create an unverified account and hand out its verification code."""
    registration = identity.register(session, data.name, data.email, data.password)
    return RegisterResponse(
        message="Registration successful. Please check your email for verification code.",
        user=_user_read(registration.user),
        verification_code=registration.verification_code if settings.expose_verification_code else None,
    )


@router.post("/verify-email", response_model=UserMessageResponse)
def verify_email(data: VerifyEmailRequest, session: SessionDep):
    user = identity.verify_email(session, data.code, data.email)
    return UserMessageResponse(message="Email verified successfully", user=_user_read(user))


@router.get("/pending-verification", response_model=PendingVerification)
def pending_verification(session: SessionDep, settings: SettingsDep):
    """Demo helper returning the most recently issued verification code."""
    pending = identity.get_pending_verification(session) if settings.expose_verification_code else None
    if pending is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No pending verification",
        )
    return pending


@router.post("/login", response_model=LoginResponse)
def login(credentials: LoginRequest, session: SessionDep, ctx: ContextDep):
    token, user = identity.login(session, ctx, credentials.email, credentials.password)
    return LoginResponse(message="Login successful", token=token, user=_user_read(user))


@router.post("/logout", response_model=MessageResponse)
def logout(ctx: ContextDep):
    """End the current session.

    In bearer mode tokens are stateless, so nothing changes server-side: the
    token stays valid until it expires and the client must discard it. In
    stored mode the shared session slot is cleared.
    """
    identity.logout(ctx)
    return MessageResponse(message="Logged out successfully")


@router.get("/profile", response_model=ProfileResponse)
def profile(session: SessionDep, ctx: ContextDep):
    """Return the stored identity of the current session."""
    return ProfileResponse(user=_user_read(identity.get_profile(session, ctx)))
