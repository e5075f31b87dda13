"""Request authentication.

Every request runs ``set_auth_user`` (it is installed as an application-wide
dependency). A bearer token with an active session and a valid signature puts
an ``AuthUser`` on ``request.state.user``; anything else leaves the request
anonymous. Routes that need an identity depend on ``authenticate_token``,
which turns an anonymous request into 401.
"""

import logging
from typing import Optional

import jwt
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from pizza_service.core.config import Settings
from pizza_service.core.exceptions import Unauthorized
from pizza_service.core.roles import AuthUser, RoleAssignment
from pizza_service.core.security import decode_token, sign_token
from pizza_service.database import get_db
from pizza_service.models import User
from pizza_service.repository import PizzaRepository

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_repository(db: AsyncSession = Depends(get_db)) -> PizzaRepository:
    return PizzaRepository(db)


def read_bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization")
    if not header:
        return None
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def set_auth_user(
    request: Request,
    repository: PizzaRepository = Depends(get_repository),
) -> Optional[AuthUser]:
    """Resolve the bearer token, if any, to the caller's identity."""
    request.state.user = None

    token = read_bearer_token(request)
    if not token:
        return None

    settings: Settings = request.app.state.settings
    if not await repository.is_logged_in(token):
        return None

    try:
        claims = decode_token(token, secret=settings.jwt_secret, algorithm=settings.jwt_algorithm)
        user = AuthUser.from_claims(claims, token=token)
    except (jwt.InvalidTokenError, KeyError, TypeError, ValueError):
        logger.debug("Ignoring bearer token that failed verification")
        return None

    request.state.user = user
    return user


async def authenticate_token(user: Optional[AuthUser] = Depends(set_auth_user)) -> AuthUser:
    if user is None:
        raise Unauthorized()
    return user


def user_claims(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "roles": [
            RoleAssignment(role=r.role, object_id=r.object_id).to_dict()
            for r in user.roles
        ],
    }


async def issue_session(repository: PizzaRepository, settings: Settings, user: User) -> str:
    """Sign a session token for ``user`` and record it as an active login."""
    token = sign_token(user_claims(user), secret=settings.jwt_secret, algorithm=settings.jwt_algorithm)
    await repository.login_user(user.id, token)
    return token
