"""Authentication API endpoints"""

from datetime import datetime, timedelta
from typing import Literal, Optional, Tuple
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.config import settings
from app.database import get_db
from app.jobs.tasks import send_password_reset_email, send_verification_email
from app.models.user import User
from app.realtime.notifications import NotificationRegistry, get_notification_registry
from app.schemas.auth import (
    Token,
    RefreshRequest,
    SignupRequest,
    EmailTokenRequest,
    PasswordResetRequest,
    PasswordResetConfirm,
    UserResponse,
    RouteDecision,
)

router = APIRouter()
logger = structlog.get_logger()

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# OAuth2 scheme
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)

# User-facing messages; backend error text is never returned for auth failures
INVALID_CREDENTIALS = "Invalid email or password."
EMAIL_IN_USE = "This email is already in use."
NOT_AN_ADMIN = "Access Denied: You are not an authorized admin."
UNKNOWN_EMAIL = "No account found with this email."
EMAIL_NOT_VERIFIED = "Please verify your email address."
INVALID_LINK = "This link is invalid or has expired."

# Client routes used by the route guard
LOGIN_ROUTE = "/auth"
VERIFY_EMAIL_ROUTE = "/verify-email"
ADMIN_LOGIN_ROUTE = "/adminlogin"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash"""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash password"""
    return pwd_context.hash(password)


def create_access_token(user: User) -> str:
    """Create JWT access token"""
    expire = datetime.utcnow() + timedelta(minutes=settings.access_token_expire_minutes)
    payload = {
        "sub": str(user.id),
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_refresh_token(user: User) -> str:
    """Create JWT refresh token"""
    expire = datetime.utcnow() + timedelta(days=settings.refresh_token_expire_days)
    payload = {
        "sub": str(user.id),
        "exp": expire,
        "type": "refresh",
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_email_token(user: User, purpose: str) -> str:
    """
    Single-purpose token for emailed links.

    Carries a fingerprint of the current password hash, so a reset link
    stops working once the password has changed.
    """
    expire = datetime.utcnow() + timedelta(hours=settings.email_token_expire_hours)
    payload = {
        "sub": str(user.id),
        "exp": expire,
        "type": purpose,
        "pwd": user.hashed_password[-8:],
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_email_token(token: str, purpose: str) -> Tuple[UUID, str]:
    """Return (user id, password fingerprint) or raise 400"""
    invalid = HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_LINK)
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
        user_id = payload.get("sub")
        if user_id is None or payload.get("type") != purpose:
            raise invalid
        return UUID(user_id), payload.get("pwd", "")
    except (JWTError, ValueError):
        raise invalid


def issue_tokens(user: User) -> Token:
    access_token = create_access_token(user)
    refresh_token = create_refresh_token(user)
    user.refresh_token = refresh_token
    return Token(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=settings.access_token_expire_minutes * 60,
    )


def queue_email(task, user: User) -> None:
    """Hand an email job to the worker; a broker outage is logged, not raised"""
    try:
        task.delay(str(user.id))
    except Exception as e:
        logger.error("Failed to queue email", task=task.name, user_id=str(user.id), error=str(e))


async def user_from_token(token: Optional[str], db: AsyncSession) -> Optional[User]:
    """Resolve an access token to an active user, or None"""
    if not token:
        return None

    try:
        payload = jwt.decode(
            token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm]
        )
        user_id: str = payload.get("sub")
        token_type: str = payload.get("type")

        if user_id is None or token_type != "access":
            return None
        user_uuid = UUID(user_id)
    except (JWTError, ValueError):
        return None

    result = await db.execute(select(User).where(User.id == user_uuid))
    user = result.scalar_one_or_none()

    if user is None or not user.is_active:
        return None

    return user


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Get current authenticated user from token"""
    user = await user_from_token(token, db)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_optional_user(
    token: Optional[str] = Depends(optional_oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    return await user_from_token(token, db)


async def get_current_active_user(
    current_user: User = Depends(get_current_user),
) -> User:
    """Verify user is active"""
    if not current_user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user


async def get_verified_user(
    current_user: User = Depends(get_current_active_user),
) -> User:
    """Customer area access: email must be verified"""
    if not current_user.email_verified:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=EMAIL_NOT_VERIFIED,
            headers={"X-Redirect-To": VERIFY_EMAIL_ROUTE},
        )
    return current_user


async def get_admin_user(
    current_user: User = Depends(get_current_active_user),
) -> User:
    """Admin area access: privileged flag from the profile row"""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions",
        )
    return current_user


def resolve_route(user: Optional[User], area: str) -> RouteDecision:
    """Decide whether ``user`` may enter the user or admin area, or where to go instead"""
    if area == "admin":
        if user is None or not user.is_admin:
            return RouteDecision(allowed=False, redirect=ADMIN_LOGIN_ROUTE)
        return RouteDecision(allowed=True)

    if user is None:
        return RouteDecision(allowed=False, redirect=LOGIN_ROUTE)
    if not user.email_verified:
        return RouteDecision(allowed=False, redirect=VERIFY_EMAIL_ROUTE)
    return RouteDecision(allowed=True)


async def _authenticate(email: str, password: str, db: AsyncSession) -> User:
    result = await db.execute(select(User).where(User.email == email.lower()))
    user = result.scalar_one_or_none()

    if not user or not verify_password(password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_CREDENTIALS,
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User account is disabled",
        )

    return user


@router.post("/signup", response_model=Token, status_code=status.HTTP_201_CREATED)
async def signup(
    request: SignupRequest,
    db: AsyncSession = Depends(get_db),
):
    """Create an account and a non-admin profile, then send a verification email"""
    email = request.email.lower()
    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=EMAIL_IN_USE)

    user = User(
        email=email,
        hashed_password=get_password_hash(request.password),
        name=request.name,
        is_admin=False,
        email_verified=False,
        last_login=datetime.utcnow(),
    )
    db.add(user)
    await db.flush()

    tokens = issue_tokens(user)
    await db.commit()

    logger.info("User signed up", user_id=str(user.id))
    queue_email(send_verification_email, user)

    return tokens


@router.post("/login", response_model=Token)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
):
    """Authenticate user and return tokens"""
    user = await _authenticate(form_data.username, form_data.password, db)

    # Update last login
    user.last_login = datetime.utcnow()
    tokens = issue_tokens(user)
    await db.commit()

    return tokens


@router.post("/admin/login", response_model=Token)
async def admin_login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
):
    """Authenticate an administrator; other accounts are turned away"""
    user = await _authenticate(form_data.username, form_data.password, db)

    if not user.is_admin:
        logger.warning("Non-admin attempted admin login", user_id=str(user.id))
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=NOT_AN_ADMIN)

    user.last_login = datetime.utcnow()
    tokens = issue_tokens(user)
    await db.commit()

    return tokens


@router.post("/refresh", response_model=Token)
async def refresh_token(
    request: RefreshRequest,
    db: AsyncSession = Depends(get_db),
):
    """Refresh access token using refresh token"""
    invalid = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid refresh token",
    )
    try:
        payload = jwt.decode(
            request.refresh_token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
        user_id: str = payload.get("sub")
        token_type: str = payload.get("type")

        if user_id is None or token_type != "refresh":
            raise invalid
        user_uuid = UUID(user_id)
    except (JWTError, ValueError):
        raise invalid

    result = await db.execute(select(User).where(User.id == user_uuid))
    user = result.scalar_one_or_none()

    if not user or user.refresh_token != request.refresh_token:
        raise invalid

    # Rotate refresh token
    tokens = issue_tokens(user)
    await db.commit()

    return tokens


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_active_user),
):
    """Get current user information"""
    return current_user


@router.get("/route", response_model=RouteDecision)
async def route_guard(
    area: Literal["user", "admin"] = Query("user"),
    current_user: Optional[User] = Depends(get_optional_user),
):
    """Tell the client whether the requested area is reachable"""
    return resolve_route(current_user, area)


@router.post("/logout")
async def logout(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    registry: NotificationRegistry = Depends(get_notification_registry),
):
    """Logout user by invalidating refresh token and dropping their notifications"""
    current_user.refresh_token = None
    await db.commit()
    registry.discard(current_user.id)
    return {"message": "Successfully logged out"}


@router.post("/send-verification", status_code=status.HTTP_202_ACCEPTED)
async def resend_verification(
    current_user: User = Depends(get_current_active_user),
):
    """Send the verification email again"""
    if current_user.email_verified:
        return {"message": "Email already verified"}
    queue_email(send_verification_email, current_user)
    return {"message": "Verification email sent"}


@router.post("/verify-email", response_model=UserResponse)
async def verify_email(
    request: EmailTokenRequest,
    db: AsyncSession = Depends(get_db),
):
    """Mark the email address behind a verification link as verified"""
    user_id, _ = decode_email_token(request.token, "verify_email")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_LINK)

    if not user.email_verified:
        user.email_verified = True
        await db.commit()
        await db.refresh(user)
        logger.info("Email verified", user_id=str(user.id))

    return user


@router.post("/password-reset", status_code=status.HTTP_202_ACCEPTED)
async def request_password_reset(
    request: PasswordResetRequest,
    db: AsyncSession = Depends(get_db),
):
    """Email a password reset link"""
    result = await db.execute(select(User).where(User.email == request.email.lower()))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=UNKNOWN_EMAIL)

    queue_email(send_password_reset_email, user)
    return {"message": "Password reset email sent"}


@router.post("/password-reset/confirm")
async def confirm_password_reset(
    request: PasswordResetConfirm,
    db: AsyncSession = Depends(get_db),
):
    """Set a new password from a reset link; existing sessions are signed out"""
    user_id, fingerprint = decode_email_token(request.token, "password_reset")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user or user.hashed_password[-8:] != fingerprint:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_LINK)

    user.hashed_password = get_password_hash(request.new_password)
    user.refresh_token = None
    await db.commit()

    logger.info("Password reset", user_id=str(user.id))
    return {"message": "Password updated"}
