"""Session tokens: issue, verify, and resolve the caller of a REST request."""

import logging
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from mindmate.core.config import settings
from mindmate.core.database import get_session
from mindmate.core.errors import AuthenticationFailure
from mindmate.models.account import Account

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def require_secret() -> str:
    if not settings.jwt_secret:
        raise RuntimeError("MINDMATE_JWT_SECRET is not set; refusing to authenticate connections")
    return settings.jwt_secret


def create_access_token(identity: str, expires_in: timedelta | None = None) -> str:
    """Sign a token the way the identity provider does: {"id": ..., "exp": ...}."""
    ttl = expires_in if expires_in is not None else timedelta(days=settings.token_ttl_days)
    payload = {"id": identity, "exp": datetime.now(timezone.utc) + ttl}
    return jwt.encode(payload, require_secret(), algorithm=settings.jwt_algorithm)


def decode_token(token: str | None) -> str:
    """Verify signature and expiry and return the subject identity.

    Raises AuthenticationFailure for a missing token, a bad signature, an
    expired token or a token without a subject.
    """
    if not token:
        raise AuthenticationFailure("No token provided")
    try:
        claims = jwt.decode(token, require_secret(), algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError as e:
        raise AuthenticationFailure("Token expired") from e
    except jwt.InvalidTokenError as e:
        raise AuthenticationFailure("Invalid token") from e

    identity = claims.get("id") or claims.get("_id") or claims.get("sub")
    if not identity:
        raise AuthenticationFailure("Token carries no identity")
    return str(identity)


async def get_current_account(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> Account:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=401, detail="No token provided")
    try:
        identity = decode_token(credentials.credentials)
    except AuthenticationFailure as e:
        logger.debug(f"REST auth rejected: {e}")
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    account = session.get(Account, identity)
    if not account:
        raise HTTPException(status_code=401, detail="User or Caretaker not found")
    return account
