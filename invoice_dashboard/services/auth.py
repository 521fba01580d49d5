# services/auth.py - Credentials Sign-In
# ============================================================================

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Mapping, Optional, Union
import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from invoice_dashboard.core.config import settings
from invoice_dashboard.core.navigation import is_safe_redirect, redirect
from invoice_dashboard.models.user import User
from invoice_dashboard.schemas.auth import CredentialsRequest

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid credentials."
GENERIC_AUTH_MESSAGE = "Something went wrong."

password_hasher = PasswordHasher()


def hash_password(password: str) -> str:
    return password_hasher.hash(password)


class AuthError(Exception):
    """Sign-in failure; ``type`` names what went wrong."""

    type = "AuthError"

    def __init__(self, message: Optional[str] = None, *, type: Optional[str] = None):
        if type is not None:
            self.type = type
        super().__init__(message or self.type)


class CredentialsSignin(AuthError):
    type = "CredentialsSignin"


class InvalidProvider(AuthError):
    type = "InvalidProvider"


class CallbackRouteError(AuthError):
    type = "CallbackRouteError"


class CredentialsProvider:
    """Email + password sign-in against the users table."""

    id = "credentials"

    def __init__(self, hasher: PasswordHasher = password_hasher):
        self.hasher = hasher

    async def authorize(self, form_data: Mapping[str, Any], db: AsyncSession) -> User:
        try:
            credentials = CredentialsRequest.model_validate(dict(form_data))
        except ValidationError:
            raise CredentialsSignin()

        result = await db.execute(select(User).where(User.email == credentials.email))
        user = result.scalar_one_or_none()
        if not user:
            raise CredentialsSignin()

        try:
            self.hasher.verify(user.password, credentials.password)
        except (VerificationError, InvalidHashError):
            raise CredentialsSignin()

        return user


class AuthService:
    def __init__(self, db: AsyncSession, providers: Optional[Dict[str, Any]] = None):
        self.db = db
        if providers is None:
            providers = {CredentialsProvider.id: CredentialsProvider()}
        self.providers = providers

    async def sign_in(self, provider_id: str, form_data: Mapping[str, Any]) -> RedirectResponse:
        """Authorize with the named provider and start a session.

        Success is a redirect carrying the access token cookie. Failures
        raise ``AuthError``.
        """
        provider = self.providers.get(provider_id)
        if provider is None:
            raise InvalidProvider(f"Unknown sign-in provider: {provider_id}")

        try:
            user = await provider.authorize(form_data, self.db)
        except SQLAlchemyError as e:
            logger.exception("User lookup failed during sign-in")
            raise CallbackRouteError("User lookup failed") from e

        logger.info(f"User {user.id} signed in")

        target = form_data.get("redirectTo") or settings.DASHBOARD_PATH
        if not isinstance(target, str) or not is_safe_redirect(target):
            target = settings.DASHBOARD_PATH

        response = redirect(target)
        response.set_cookie(
            settings.ACCESS_TOKEN_COOKIE,
            self._create_access_token({"sub": str(user.id)}),
            max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            httponly=True,
            samesite="lax",
        )
        return response

    async def authenticate(self, form_data: Mapping[str, Any]) -> Union[str, RedirectResponse]:
        """Sign in with credentials, mapping auth failures to a message.

        Errors that are not ``AuthError`` propagate.
        """
        try:
            return await self.sign_in("credentials", form_data)
        except AuthError as error:
            logger.warning(f"Sign-in rejected: {error.type}")
            if error.type == "CredentialsSignin":
                return INVALID_CREDENTIALS_MESSAGE
            return GENERIC_AUTH_MESSAGE

    def _create_access_token(self, data: dict, expires_delta: Optional[timedelta] = None):
        """Create JWT access token"""
        to_encode = data.copy()
        if expires_delta:
            expire = datetime.now(timezone.utc) + expires_delta
        else:
            expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

        to_encode.update({"exp": expire})
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm="HS256")

    async def get_current_user(self, token: str) -> Optional[User]:
        """Get current user from JWT token"""
        try:
            payload = jwt.decode(token, settings.SECRET_KEY, algorithms=["HS256"])
        except jwt.PyJWTError:
            return None

        user_id = payload.get("sub")
        if not user_id:
            return None
        return await self.db.get(User, user_id)
