from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict

import jwt
from passlib.context import CryptContext


_pwd = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("password_blank")
    return _pwd.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return _pwd.verify(password, password_hash)
    except ValueError:
        # Stored value is not a recognised hash
        return False


def sign_token(payload: Dict[str, Any], *, secret: str, algorithm: str = "HS256") -> str:
    """Sign ``payload`` as a JWT.

    A random ``jti`` and an ``iat`` are added so that two tokens minted for the
    same user in the same second are still distinct sessions.
    """
    if not secret:
        raise ValueError("jwt_secret_blank")

    claims = dict(payload)
    claims["iat"] = int(datetime.now(timezone.utc).timestamp())
    claims["jti"] = uuid.uuid4().hex
    return jwt.encode(claims, secret, algorithm=algorithm)


def decode_token(token: str, *, secret: str, algorithm: str = "HS256") -> Dict[str, Any]:
    if not token:
        raise ValueError("token_blank")
    return jwt.decode(token, secret, algorithms=[algorithm])


def token_signature(token: str) -> str:
    """Return the signature segment of a JWT; sessions are stored by it."""
    parts = token.split(".")
    if len(parts) == 3:
        return parts[2]
    return ""
