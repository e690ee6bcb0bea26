"""
Account endpoints: registration, login sessions, password reset and saved
addresses.

The session travels in an http-only cookie; logging in also folds the
browser's guest cart into the user's cart.
"""
import logging

from fastapi import APIRouter, Request

from db import get_db_session
from models.address import AddressInput
from models.user import RegisterRequest, LoginRequest, PasswordResetRequestBody, PasswordResetConfirmBody
from services.auth import AuthService
from services.user import UserService
from utils.api_response import api_ok, generate_correlation_id
from utils.error_handler import safe_route
from web.dependencies import get_current_user, get_guest_key, get_session_token, read_model_body, \
    require_user, set_session_cookie, clear_session_cookie

logger = logging.getLogger(__name__)

auth_router = APIRouter(prefix="/api/auth", tags=["auth"])
account_router = APIRouter(prefix="/api/account", tags=["account"])


def _client_meta(request: Request) -> tuple[str | None, str | None]:
    ip = request.client.host if request.client else None
    return ip, request.headers.get("user-agent")


@auth_router.post("/register")
@safe_route("Failed to register")
async def register(request: Request):
    register_request = await read_model_body(request, RegisterRequest)
    ip, user_agent = _client_meta(request)
    async with get_db_session() as session:
        user, token, expires_at = await AuthService.register(register_request, session, ip, user_agent)

    response = api_ok({"user": UserService.to_view(user)}, status_code=201)
    set_session_cookie(response, token, expires_at)
    return response


@auth_router.post("/login")
@safe_route("Failed to log in")
async def login(request: Request):
    correlation_id = generate_correlation_id()
    login_request = await read_model_body(request, LoginRequest)
    ip, user_agent = _client_meta(request)
    async with get_db_session() as session:
        user, token, expires_at = await AuthService.login(
            login_request, session, get_guest_key(request), ip, user_agent
        )
    logger.info(f"[{correlation_id}] Session opened for user {user.id}")

    response = api_ok({"user": UserService.to_view(user)})
    set_session_cookie(response, token, expires_at)
    return response


@auth_router.post("/logout")
@safe_route("Failed to log out")
async def logout(request: Request):
    async with get_db_session() as session:
        await AuthService.logout(get_session_token(request), session)
    response = api_ok()
    clear_session_cookie(response)
    return response


@auth_router.get("/me")
@safe_route("Failed to fetch user")
async def me(request: Request):
    async with get_db_session() as session:
        user = await get_current_user(request, session)
    return api_ok({"user": UserService.to_view(user) if user else None})


@auth_router.post("/password-reset/request")
@safe_route("Failed to request password reset")
async def request_password_reset(request: Request):
    """Always answers ok so the endpoint cannot be used to discover which emails have accounts."""
    body = await read_model_body(request, PasswordResetRequestBody)
    async with get_db_session() as session:
        await AuthService.request_password_reset(body.email, session)
    return api_ok(message="If the email exists, a reset link will be sent.")


@auth_router.post("/password-reset/confirm")
@safe_route("Failed to reset password")
async def confirm_password_reset(request: Request):
    """
    Request Body:
        {"email": "...", "token": "...", "newPassword": "..."}
    """
    body = await read_model_body(request, PasswordResetConfirmBody)
    async with get_db_session() as session:
        await AuthService.confirm_password_reset(body, session)
    response = api_ok()
    clear_session_cookie(response)
    return response


@account_router.get("/addresses")
@safe_route("Failed to fetch addresses")
async def list_addresses(request: Request):
    async with get_db_session() as session:
        user = await require_user(request, session)
        addresses = await UserService.list_addresses(user, session)
    return api_ok(addresses)


@account_router.post("/addresses")
@safe_route("Failed to save address")
async def create_address(request: Request):
    address_input = await read_model_body(request, AddressInput)
    async with get_db_session() as session:
        user = await require_user(request, session)
        address = await UserService.create_address(user, address_input, session)
    return api_ok(address, status_code=201)
