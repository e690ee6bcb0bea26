"""
Request helpers shared by the routers: who is calling, which guest cart the
browser holds, and the cookies that carry both.
"""
import json
from datetime import datetime
from typing import TypeVar

from fastapi import Request
from fastapi.responses import Response
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

import config
from exceptions.base import InvalidRequestException
from exceptions.user import AuthenticationRequiredException, AdminRequiredException
from models.user import UserDTO
from services.auth import AuthService
from utils.time_utils import utcnow

ModelT = TypeVar("ModelT", bound=BaseModel)


def get_session_token(request: Request) -> str | None:
    return request.cookies.get(config.SESSION_COOKIE_NAME) or None


def get_guest_key(request: Request) -> str | None:
    return request.cookies.get(config.GUEST_COOKIE_NAME) or None


def get_client_key(request: Request, user: UserDTO | None = None) -> str:
    """Rate-limit identity: the user when logged in, else the client address."""
    if user is not None:
        return f"user:{user.id}"
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return f"ip:{forwarded.split(',')[0].strip()}"
    return f"ip:{request.client.host if request.client else 'unknown'}"


async def get_current_user(request: Request, session: AsyncSession | Session) -> UserDTO | None:
    return await AuthService.get_user_by_session_token(get_session_token(request), session)


async def require_user(request: Request, session: AsyncSession | Session) -> UserDTO:
    user = await get_current_user(request, session)
    if user is None:
        raise AuthenticationRequiredException()
    return user


async def require_admin(request: Request, session: AsyncSession | Session) -> UserDTO:
    """Anonymous callers get 403 like non-admins: admin routes never hint at a login."""
    user = await get_current_user(request, session)
    if user is None or not user.is_admin:
        raise AdminRequiredException(user.id if user else None)
    return user


async def read_json_body(request: Request) -> dict:
    """
    Parse a JSON object body.

    Raises:
        InvalidRequestException: body is not a JSON object
    """
    raw_body = await request.body()
    try:
        body = json.loads(raw_body) if raw_body else None
    except ValueError:
        body = None
    if not isinstance(body, dict):
        raise InvalidRequestException("Invalid payload")
    return body


async def read_model_body(request: Request, model: type[ModelT]) -> ModelT:
    """JSON object body validated into ``model``; shape errors are 400 "Invalid payload"."""
    body = await read_json_body(request)
    try:
        return model.model_validate(body)
    except ValidationError:
        raise InvalidRequestException("Invalid payload")


def set_guest_cookie(response: Response, guest_key: str) -> None:
    response.set_cookie(
        config.GUEST_COOKIE_NAME,
        guest_key,
        max_age=config.GUEST_CART_DAYS * 24 * 3600,
        httponly=True,
        samesite="lax",
        secure=config.COOKIE_SECURE,
        path="/",
    )


def set_session_cookie(response: Response, token: str, expires_at: datetime) -> None:
    response.set_cookie(
        config.SESSION_COOKIE_NAME,
        token,
        max_age=max(0, int((expires_at - utcnow()).total_seconds())),
        httponly=True,
        samesite="lax",
        secure=config.COOKIE_SECURE,
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        config.SESSION_COOKIE_NAME,
        httponly=True,
        samesite="lax",
        secure=config.COOKIE_SECURE,
        path="/",
    )
