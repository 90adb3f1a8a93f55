from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from app.api.auth.utils import decode_access_token
from app.core.config import settings

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login", auto_error=False)


async def get_current_user_id(
        request: Request,
        token: Optional[str] = Depends(oauth2_scheme)
) -> int:
    """
    Caller identity from the access token.
    Bearer header first, then the auth cookie set by the login page.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )

    token = token or request.cookies.get(settings.AUTH_COOKIE_NAME)
    if not token:
        raise credentials_exception

    payload = decode_access_token(token)
    if payload is None:
        raise credentials_exception

    user_id = payload.get("id")
    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        raise credentials_exception
    if user_id <= 0:
        raise credentials_exception
    return user_id
