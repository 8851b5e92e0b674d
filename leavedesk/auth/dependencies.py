from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from leavedesk.auth.schemas import CurrentUser
from leavedesk.core.config import settings
from leavedesk.core.enums import UserRole


# Tokens are issued by the account service; this process only verifies them.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


async def get_current_user(token: str = Depends(oauth2_scheme)) -> CurrentUser:
    """Resolve the authenticated user and role from the access token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        raise credentials_exception

    user_id = payload.get("user_id") or payload.get("sub")
    role_name = payload.get("role")
    if not user_id or not role_name:
        raise credentials_exception

    try:
        return CurrentUser(id=int(user_id), role=UserRole(role_name))
    except ValueError:
        raise credentials_exception
