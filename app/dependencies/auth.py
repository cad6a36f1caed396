from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from app.exceptions import Unauthorized
from app.utils.token import decode_access_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def get_current_email(token: str = Depends(oauth2_scheme)) -> str:
    """Verified principal email from the bearer token."""
    if not token:
        raise Unauthorized("Not authenticated")

    payload = decode_access_token(token)
    if payload is None:
        raise Unauthorized("Could not validate credentials")

    email = payload.get("email") or payload.get("sub")
    if not email:
        raise Unauthorized("Invalid token payload")

    return email
