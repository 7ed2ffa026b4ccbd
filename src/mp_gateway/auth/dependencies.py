"""FastAPI dependencies: get_current_user and role guards.

Usage in any protected router:
    from src.mp_gateway.auth.dependencies import require_admin

    @router.post("/admin/thing")
    async def thing(admin: Annotated[UserModel, Depends(require_admin)]):
        ...
"""

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.database import get_db_session
from src.mp_common.enums import UserRole
from src.mp_common.errors import AccessDeniedError, AccountDisabledError, InvalidCredentialsError
from src.mp_gateway.auth.jwt_handler import decode_access_token
from src.mp_gateway.user.db_models import UserModel

# auto_error=False: a missing header becomes InvalidCredentialsError (ApiResponse envelope)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


async def get_current_user(
    token: str | None = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> UserModel:
    """Validate the Bearer token and return the caller's UserModel.

    Raises InvalidCredentialsError (401) if the token is missing, invalid,
    expired, or names an unknown user; AccountDisabledError (403) if the
    account is disabled.
    """
    if not token:
        raise InvalidCredentialsError()
    payload = decode_access_token(token)

    user_id: str | None = payload.get("sub")
    if not user_id:
        raise InvalidCredentialsError()

    result = await db.execute(select(UserModel).where(UserModel.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise InvalidCredentialsError()

    if not user.is_active:
        raise AccountDisabledError()

    return user


async def require_admin(
    current_user: UserModel = Depends(get_current_user),
) -> UserModel:
    if current_user.role != UserRole.ADMIN:
        raise AccessDeniedError(UserRole.ADMIN.value)
    return current_user


async def require_vendor_or_admin(
    current_user: UserModel = Depends(get_current_user),
) -> UserModel:
    """Vendors may read their own hold ledger; admins may read any vendor's."""
    if current_user.role == UserRole.ADMIN:
        return current_user
    if current_user.role == UserRole.VENDOR and current_user.vendor_id:
        return current_user
    raise AccessDeniedError("VENDOR or ADMIN")
