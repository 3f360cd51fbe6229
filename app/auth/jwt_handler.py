"""
Caller Identity
Bearer JWTs whose subject is the calling account (player, owner or payment token)
"""
from datetime import datetime, timedelta
from typing import Optional
import logging

from fastapi import HTTPException, Header
from jose import jwt, JWTError

from config import settings

logger = logging.getLogger(__name__)

TOKEN_TYPE = "access"


def create_access_token(account_id: str, expires_minutes: Optional[int] = None) -> str:
    """Signed token authenticating `account_id` for the configured lifetime"""
    issued_at = datetime.utcnow()
    lifetime = timedelta(minutes=expires_minutes or settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)

    claims = {
        "sub": account_id,
        "type": TOKEN_TYPE,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str, token_type: str = TOKEN_TYPE) -> dict:
    """
    Decode a token and check its type

    Raises:
        HTTPException: 401 on a bad signature, an expired token or a wrong type
    """
    try:
        claims = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT verification failed: {str(e)}")
        raise HTTPException(status_code=401, detail="Invalid authentication token")

    if claims.get("type") != token_type:
        raise HTTPException(status_code=401, detail=f"Invalid token type. Expected {token_type}")
    return claims


async def get_current_account_id(authorization: Optional[str] = Header(None)) -> str:
    """FastAPI dependency: account id of the authenticated caller"""
    if not authorization:
        raise HTTPException(status_code=401, detail="Authorization header missing")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(status_code=401, detail="Invalid authorization header")

    account_id = verify_token(token.strip()).get("sub")
    if not account_id:
        raise HTTPException(status_code=401, detail="Invalid token payload")
    return account_id
