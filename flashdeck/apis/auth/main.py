from fastapi import APIRouter
from fastapi.responses import JSONResponse

from flashdeck.core.config import settings
from flashdeck.modules.auth import (
    fastapi_users,
    auth_backend,
    get_jwt_strategy,
    UserRead,
    UserCreate,
    UserUpdate,
)


router = APIRouter()


@router.get("/.well-known/jwks.json", tags=["auth"])
async def jwks():
    """JWKS endpoint for public key distribution"""
    return JSONResponse(content=get_jwt_strategy().get_jwks())


# Login/logout issue and drop the RS256 bearer token
router.include_router(
    fastapi_users.get_auth_router(auth_backend),
    prefix=f"/{settings.app.version}/auth",
    tags=["auth"],
)

router.include_router(
    fastapi_users.get_register_router(UserRead, UserCreate),
    prefix=f"/{settings.app.version}/auth",
    tags=["auth"],
)

router.include_router(
    fastapi_users.get_users_router(UserRead, UserUpdate),
    prefix=f"/{settings.app.version}/users",
    tags=["users"],
)
