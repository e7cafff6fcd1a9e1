# utils/tokenJWT.py
from jose import jwt, JWTError
from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import logging

from config import settings
from schemas.user import TokenData
from utils.errors import Unauthenticated, InvalidCredential, Forbidden

logger = logging.getLogger(__name__)

# Authorization scheme; missing headers are reported by get_current_user itself
bearer_scheme = HTTPBearer(auto_error=False)

# Generate a signed access token carrying the user id and role
def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def token_for_user(user) -> str:
    return create_access_token(data={"id": user.id, "role": user.role})

# Decode the bearer token into the caller's identity (no database lookup)
def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> TokenData:
    if credentials is None or not credentials.credentials:
        raise Unauthenticated()

    try:
        payload = jwt.decode(credentials.credentials, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.info("Rejected bearer token: %s", e)
        raise InvalidCredential("Token is not valid")

    user_id = payload.get("id")
    # Ensure the identity claim is present in the token payload
    if user_id is None:
        raise InvalidCredential("Token is not valid")

    return TokenData(id=user_id, role=payload.get("role") or "user")

# Admin gate, layered on top of get_current_user
def require_admin(current_user: TokenData = Depends(get_current_user)) -> TokenData:
    if current_user.role != "admin":
        raise Forbidden("Access denied: Admins only")
    return current_user
