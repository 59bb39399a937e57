"""
security.py
------------
Bearer token verification for the Mother of Math backend.

Notes:
- Sign-in and session management belong to the external identity provider;
  this service never issues tokens, it only validates them.
- The token subject ("sub") is the user id that owns interviews and lesson plans.
"""

from datetime import datetime, timedelta, timezone

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError

# Load constants from app configuration
from mothermath.core.config import SECRET_KEY, ALGORITHM

# -------------------------
# JWT Token Helpers
# -------------------------
def create_access_token(data: dict, expires_delta: timedelta = timedelta(minutes=60)) -> str:
    """
    Creates a signed JWT access token.

    Used by local tooling and tests to mint tokens in the identity provider's format.

    Args:
        data (dict): Claims to encode into the token (e.g. {"sub": uid}).
        expires_delta (timedelta): Token lifetime.

    Returns:
        str: Encoded JWT token as a string.
    """
    to_encode = data.copy()
    to_encode.update({"exp": datetime.now(timezone.utc) + expires_delta})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


# -------------------------
# JWT Token Verification
# -------------------------
# tokenUrl points at the identity provider's sign-in flow
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid authentication credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(token: str = Depends(oauth2_scheme)) -> str:
    """
    Decodes and verifies a JWT token, extracting the current user's id.

    Args:
        token (str): JWT token provided in the request Authorization header.

    Returns:
        str: The user id (subject) extracted from the token.

    Raises:
        HTTPException: If the token is invalid or expired.
    """
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise _credentials_exception()

    user_id = payload.get("sub")
    if not user_id:
        raise _credentials_exception()
    return user_id
