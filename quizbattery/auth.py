"""Authentication helpers and FastAPI security dependency.

Accounts live outside this service; callers present a bearer JWT issued
with the shared secret, and its `user_id` claim identifies the quiz
author or battery owner. `create_access_token` mints such tokens for
tooling and tests.

Token verification raises HTTPExceptions on failure so it can be used
directly inside route dependencies.
"""

from datetime import datetime, timedelta, timezone

from fastapi import HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import jwt

from .config import settings

bearer_scheme = HTTPBearer()


def create_access_token(user_id: str, expires_in: timedelta = timedelta(hours=24)) -> str:
    """Sign a token carrying `user_id` with the configured secret."""
    expire = datetime.now(timezone.utc) + expires_in
    payload = {"user_id": user_id, "exp": int(expire.timestamp())}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str):
    """Decode and verify a JWT token.

    Returns the decoded payload on success or raises an HTTPException
    with status 401 on failure.
    """
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail='token expired')
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail='invalid token')


def get_current_user_id(credentials: HTTPAuthorizationCredentials = Security(bearer_scheme)) -> str:
    """FastAPI dependency that returns the authenticated user's id."""
    payload = decode_token(credentials.credentials)
    user_id = payload.get('user_id')
    if not user_id:
        raise HTTPException(status_code=401, detail='invalid token payload')
    return str(user_id)
