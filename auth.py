"""
Password hashing and request authentication.

Requests authenticate with HTTP Basic credentials (email + password) checked
against the User list. Requests without credentials run as anonymous.
"""

import logging
from typing import Optional

import bcrypt
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPBasic, HTTPBasicCredentials

import config
from access import ANONYMOUS, AuthContext, Identity
from database import find_one

logger = logging.getLogger(__name__)

security = HTTPBasic(auto_error=False)


def hash_password(password: str) -> str:
    # bcrypt only looks at the first 72 bytes
    password_bytes = password.encode("utf-8")[:72]
    return bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=config.BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8")[:72], password_hash.encode("utf-8"))
    except ValueError:
        logger.error("Stored password hash is malformed")
        return False


def identity_from_user(user: dict) -> Identity:
    return Identity(
        id=str(user["id"]),
        is_admin=bool(user.get("is_admin")),
        is_member=bool(user.get("is_member")),
    )


def get_auth_context(
    request: Request,
    credentials: Optional[HTTPBasicCredentials] = Depends(security),
) -> AuthContext:
    if credentials is None:
        return ANONYMOUS

    user = find_one(request.app.state.db, "user", {"email": credentials.username})
    if not user or not verify_password(credentials.password, user.get("password")):
        logger.warning(f"Failed sign-in for {credentials.username}")
        raise HTTPException(
            status_code=401,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Basic"},
        )
    return AuthContext(item=identity_from_user(user))
