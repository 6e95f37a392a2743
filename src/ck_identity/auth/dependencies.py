"""FastAPI dependency: get_current_caller.

Usage in any protected router:
    from src.ck_identity.auth.dependencies import get_current_caller

    @router.get("/protected")
    async def protected(caller: CallerContext = Depends(get_current_caller)):
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.ck_common.enums import UserTier
from src.ck_common.errors import InvalidCredentialsError
from src.ck_identity.auth.context import CallerContext
from src.ck_identity.auth.jwt_handler import decode_access_token

# tokenUrl points at the storefront's auth service (used by Swagger UI only)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_caller(token: str = Depends(oauth2_scheme)) -> CallerContext:
    """Validate the bearer token and build the caller context.

    An unknown tier claim degrades to STANDARD (no discount) rather than failing.
    """
    try:
        payload = decode_access_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    try:
        tier = UserTier(str(payload.get("tier", "")).upper().strip())
    except ValueError:
        tier = UserTier.STANDARD
    return CallerContext(user_id=str(payload["sub"]), tier=tier)
