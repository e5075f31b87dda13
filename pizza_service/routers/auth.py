"""
Authentication endpoints: register, login, logout.
"""

import logging

from fastapi import APIRouter, Depends

from pizza_service.auth import authenticate_token, get_app_settings, get_repository, issue_session
from pizza_service.core.config import Settings
from pizza_service.core.exceptions import Unauthorized, ValidationError
from pizza_service.core.roles import AuthUser
from pizza_service.repository import PizzaRepository
from pizza_service.schemas import AuthResponse, LoginRequest, MessageResponse, RegisterRequest, UserOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("", response_model=AuthResponse, summary="Register a new user")
async def register(
    body: RegisterRequest,
    repository: PizzaRepository = Depends(get_repository),
    settings: Settings = Depends(get_app_settings),
) -> AuthResponse:
    if not body.name or not body.email or not body.password:
        raise ValidationError("name, email, and password are required")

    user = await repository.add_user(body.name, body.email, body.password)
    token = await issue_session(repository, settings, user)

    logger.info(f"Registered user #{user.id}")
    return AuthResponse(user=UserOut.model_validate(user), token=token)


@router.put("", response_model=AuthResponse, summary="Login existing user")
async def login(
    body: LoginRequest,
    repository: PizzaRepository = Depends(get_repository),
    settings: Settings = Depends(get_app_settings),
) -> AuthResponse:
    if not body.email or not body.password:
        raise Unauthorized()

    user = await repository.verify_credentials(body.email, body.password)
    if user is None:
        logger.warning("Login failed")
        raise Unauthorized()

    token = await issue_session(repository, settings, user)

    logger.info(f"User #{user.id} logged in")
    return AuthResponse(user=UserOut.model_validate(user), token=token)


@router.delete("", response_model=MessageResponse, summary="Logout a user")
async def logout(
    user: AuthUser = Depends(authenticate_token),
    repository: PizzaRepository = Depends(get_repository),
) -> MessageResponse:
    await repository.logout_user(user.token)

    logger.info(f"User #{user.id} logged out")
    return MessageResponse(message="logout successful")
