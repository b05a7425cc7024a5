"""
rally.api.deps — FastAPI dependency injection
===============================================
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Annotated

import jwt
from fastapi import Depends, Header
from jwt.exceptions import InvalidTokenError
from sqlalchemy import Engine

from rally.config import RallyConfig, load_config
from rally.database.engine import create_db_engine, run_db
from rally.database.models import User
from rally.errors import AuthenticationRequired
from rally.services.identity_service import get_or_create_user

_WEAK_SECRETS = frozenset({
    "rally-dev-secret-change-me",
    "change-me",
    "secret",
    "dev",
    "",
})

_MIN_SECRET_LENGTH = 32

JWT_ALGORITHM = "HS256"


def _load_jwt_secret() -> str:
    """Load and validate JWT_SECRET from the environment.

    Raises RuntimeError at import time if the secret is missing, blank,
    too short (< 32 chars), or a known weak default.
    """
    secret = os.getenv("JWT_SECRET", "")
    if not secret:
        raise RuntimeError(
            "JWT_SECRET environment variable is not set. "
            "Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(64))\""
        )
    if secret in _WEAK_SECRETS:
        raise RuntimeError(
            f"JWT_SECRET is set to a known weak default ('{secret}'). "
            "Please set a strong, unique secret."
        )
    if len(secret) < _MIN_SECRET_LENGTH:
        raise RuntimeError(
            f"JWT_SECRET is too short ({len(secret)} chars). "
            f"Minimum length is {_MIN_SECRET_LENGTH} characters."
        )
    return secret


JWT_SECRET: str = _load_jwt_secret()


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> RallyConfig:
    return load_config(os.getenv("RALLY_CONFIG", "config.yaml"))


def get_identity(authorization: Annotated[str | None, Header()] = None) -> dict:
    """Validate the bearer token and return its claims.

    The ``sub`` claim is the caller's ``external_id``.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthenticationRequired("Missing token")
    token = authorization.split(" ", 1)[1]
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except InvalidTokenError:
        raise AuthenticationRequired("Invalid token")
    if not payload.get("sub"):
        raise AuthenticationRequired("Token has no subject")
    return payload


async def get_current_user(
    identity: dict = Depends(get_identity),
    engine: Engine = Depends(get_engine),
) -> User:
    """Resolve the caller to a ``users`` row, creating it on first contact."""
    return await run_db(get_or_create_user, engine, str(identity["sub"]), identity)
