"""
Password accounts, access tokens and the admin allow-list check.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Annotated, Any, Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from portal_backend.config import Settings, get_settings
from portal_backend.db import AccountRecord, DbClient
from portal_backend.dependencies import get_db_client
from portal_backend.errors import ApiError, DuplicateKeyError

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
COOKIE_NAME = "access_token"


def token_url(settings: Settings) -> str:
    return f"{settings.api_prefix.rstrip('/')}/auth/login"


pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=token_url(get_settings()), auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(
    account: AccountRecord,
    settings: Optional[Settings] = None,
    now: Optional[datetime] = None,
) -> str:
    """
    Create a signed token for an account.

    Args:
        account: The signed-in account; its id becomes the subject.
        settings: Source of the secret and lifetime. Defaults to get_settings().
        now: Current UTC time (for testing/determinism).
    """
    settings = settings or get_settings()
    issued = now or datetime.now(timezone.utc)
    claims = {
        "sub": account.id,
        "email": account.email,
        "iat": issued,
        "exp": issued + timedelta(minutes=settings.access_token_expire_minutes),
    }
    return jwt.encode(claims, settings.secret_key, algorithm=ALGORITHM)


def decode_access_token(
    token: str, settings: Optional[Settings] = None
) -> Optional[dict[str, Any]]:
    settings = settings or get_settings()
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None


def authenticate(db: DbClient, email: str, password: str) -> Optional[AccountRecord]:
    account = db.get_account_by_email(email)
    if not account or not verify_password(password, account.password_hash):
        return None
    return account


def ensure_admin(db: DbClient, email: str, password: str) -> str:
    """
    Make ``email`` an admin, creating its account first when needed.

    An account that is already registered keeps its existing password.
    Returns "created", or "exists" when the email was already an admin.
    """
    try:
        db.create_account(email, hash_password(password))
        logger.info("Created account %s", email)
    except DuplicateKeyError:
        logger.info("Account %s already registered, adding to admins", email)

    try:
        db.add_admin(email)
    except DuplicateKeyError:
        logger.info("%s is already an admin", email)
        return "exists"
    logger.info("Added admin %s", email)
    return "created"


def _token_from_request(request: Request, header_token: Optional[str]) -> Optional[str]:
    if header_token:
        return header_token
    cookie = request.cookies.get(COOKIE_NAME)
    if cookie and cookie.startswith("Bearer "):
        return cookie.split(" ", 1)[1]
    return None


def get_current_account(
    request: Request,
    token: Annotated[Optional[str], Depends(oauth2_scheme)],
    db: DbClient = Depends(get_db_client),
) -> AccountRecord:
    unauthorized = ApiError(
        401, "not_authenticated", headers={"WWW-Authenticate": "Bearer"}
    )
    token = _token_from_request(request, token)
    if not token:
        raise unauthorized

    payload = decode_access_token(token)
    if not payload or not isinstance(payload.get("sub"), str):
        raise unauthorized

    account = db.get_account(payload["sub"])
    if not account:
        raise unauthorized
    return account


def require_admin(
    account: AccountRecord = Depends(get_current_account),
    db: DbClient = Depends(get_db_client),
) -> AccountRecord:
    if not db.is_admin(account.email):
        logger.warning("Account %s denied admin access", account.email)
        raise ApiError(403, "not_admin")
    return account
