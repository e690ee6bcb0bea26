"""
Accounts, login sessions and password resets.

Session cookies carry a random token; the database only ever sees its
sha256 digest (see EncryptionService). Password reset links are written to
the log until an email sender exists.
"""
import logging
import re
from datetime import datetime, timedelta
from urllib.parse import quote

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

import config
from db import session_commit
from exceptions.base import InvalidRequestException
from exceptions.user import EmailAlreadyRegisteredException, InvalidCredentialsException, \
    AccountDisabledException, InvalidResetTokenException
from models.user import UserDTO, RegisterRequest, LoginRequest, PasswordResetConfirmBody
from repositories.password_reset import PasswordResetRepository
from repositories.user import UserRepository
from repositories.user_session import UserSessionRepository
from services.cart import CartService
from services.encryption import EncryptionService
from utils.time_utils import utcnow

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 8


class AuthService:

    @staticmethod
    def normalize_email(email) -> str:
        email = email.strip().lower() if isinstance(email, str) else ""
        if not EMAIL_PATTERN.match(email):
            raise InvalidRequestException("Invalid email", field="email")
        return email

    @staticmethod
    def _check_password_strength(password, field: str = "password") -> None:
        if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
            raise InvalidRequestException(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters", field=field
            )

    @staticmethod
    async def _open_session(user_id: str, session: AsyncSession | Session,
                            ip: str | None = None, user_agent: str | None = None) -> tuple[str, datetime]:
        """Returns (raw token for the cookie, expiry)."""
        token = EncryptionService.generate_token()
        expires_at = utcnow() + timedelta(days=config.SESSION_DAYS)
        await UserSessionRepository.create(user_id, EncryptionService.hash_token(token), expires_at, session,
                                           ip=ip, user_agent=user_agent)
        return token, expires_at

    @staticmethod
    async def register(request: RegisterRequest, session: AsyncSession | Session,
                       ip: str | None = None, user_agent: str | None = None) -> tuple[UserDTO, str, datetime]:
        email = AuthService.normalize_email(request.email)
        AuthService._check_password_strength(request.password)
        if await UserRepository.get_by_email(email, session) is not None:
            raise EmailAlreadyRegisteredException(email)

        user = await UserRepository.create(
            email,
            EncryptionService.hash_password(request.password),
            session,
            full_name=request.full_name.strip() if request.full_name else None,
            phone=request.phone.strip() if request.phone else None,
        )
        token, expires_at = await AuthService._open_session(user.id, session, ip, user_agent)
        await session_commit(session)
        logger.info(f"👤 Registered user {user.id}")
        return user, token, expires_at

    @staticmethod
    async def login(request: LoginRequest, session: AsyncSession | Session, guest_key: str | None = None,
                    ip: str | None = None, user_agent: str | None = None) -> tuple[UserDTO, str, datetime]:
        """
        Check credentials, open a session and fold the browser's guest cart
        into the user's cart.

        Raises:
            InvalidCredentialsException: unknown email or wrong password (401)
            AccountDisabledException: inactive account (403)
        """
        email = request.email.strip().lower() if isinstance(request.email, str) else ""
        user = await UserRepository.get_by_email(email, session) if email else None
        if user is None:
            raise InvalidCredentialsException()
        if not user.is_active:
            raise AccountDisabledException(user.id)

        password_hash = await UserRepository.get_password_hash(user.id, session)
        if not EncryptionService.verify_password(request.password, password_hash):
            logger.warning(f"Failed login for user {user.id}")
            raise InvalidCredentialsException()

        token, expires_at = await AuthService._open_session(user.id, session, ip, user_agent)
        await CartService.merge_guest_cart(user.id, guest_key, session)
        await session_commit(session)
        logger.info(f"🔑 User {user.id} logged in")
        return user, token, expires_at

    @staticmethod
    async def logout(token: str | None, session: AsyncSession | Session) -> None:
        if not token:
            return
        await UserSessionRepository.revoke(EncryptionService.hash_token(token), session)
        await session_commit(session)

    @staticmethod
    async def get_user_by_session_token(token: str | None, session: AsyncSession | Session) -> UserDTO | None:
        """The active user behind a session cookie; revoked, expired or disabled means anonymous."""
        if not token:
            return None
        user_session = await UserSessionRepository.get_active_by_token_hash(
            EncryptionService.hash_token(token), session
        )
        if user_session is None:
            return None
        user = await UserRepository.get_by_id(user_session.user_id, session)
        if user is None or not user.is_active:
            return None
        return user

    @staticmethod
    async def request_password_reset(email, session: AsyncSession | Session) -> None:
        """
        Issue a one-hour reset token for an active user.

        Always succeeds from the caller's point of view so the endpoint never
        reveals whether an email is registered.
        """
        email = email.strip().lower() if isinstance(email, str) else ""
        user = await UserRepository.get_by_email(email, session) if email else None
        if user is None or not user.is_active:
            logger.info("Password reset requested for an unknown or inactive account")
            return

        token = EncryptionService.generate_token()
        expires_at = utcnow() + timedelta(minutes=config.PASSWORD_RESET_TTL_MINUTES)
        await PasswordResetRepository.create(user.id, EncryptionService.hash_token(token), expires_at, session)
        await session_commit(session)

        link = f"{config.SITE_URL}/auth/reset-password?token={token}&email={quote(email, safe='')}"
        logger.info(f"[PASSWORD_RESET_LINK] {link}")

    @staticmethod
    async def confirm_password_reset(body: PasswordResetConfirmBody, session: AsyncSession | Session) -> None:
        """
        Spend a reset token: new password, token used, every session revoked,
        all in one commit.

        Raises:
            InvalidRequestException: new password too short
            InvalidResetTokenException: unknown user or no usable token
        """
        AuthService._check_password_strength(body.new_password, field="newPassword")
        email = body.email.strip().lower() if isinstance(body.email, str) else ""
        user = await UserRepository.get_by_email(email, session) if email else None
        if user is None or not user.is_active:
            raise InvalidResetTokenException()

        token = await PasswordResetRepository.get_usable(user.id, EncryptionService.hash_token(body.token), session)
        if token is None or not await PasswordResetRepository.mark_used(token.id, session):
            raise InvalidResetTokenException()

        await UserRepository.update_password(user.id, EncryptionService.hash_password(body.new_password), session)
        revoked = await UserSessionRepository.revoke_all_for_user(user.id, session)
        await session_commit(session)
        logger.info(f"🔐 Password reset for user {user.id}, {revoked} session(s) revoked")
