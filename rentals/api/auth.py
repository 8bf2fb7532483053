# rentals/api/auth.py
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt

from rentals.domain.errors import AuthenticationError
from rentals.domain.schemas import CurrentUser
from rentals.utils.settings import JWT_SECRET, JWT_ALGORITHM

#tokens are issued by the auth service, here we only verify them
security = HTTPBearer(auto_error=False)


def decode_token(token: str) -> CurrentUser:
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError:
        raise AuthenticationError("Invalid or expired token")

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Invalid token structure")

    return CurrentUser(
        id=str(user_id),
        role=payload.get("role") or "customer",
        name=payload.get("name") or "",
        email=payload.get("email") or "",
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> CurrentUser:
    if credentials is None:
        raise AuthenticationError("Not authenticated")
    return decode_token(credentials.credentials)
