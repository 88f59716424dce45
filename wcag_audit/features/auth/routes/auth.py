from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from wcag_audit.features.auth.models.user import User
from wcag_audit.features.auth.schemas.auth import MagicLinkRequest, UserResponse
from wcag_audit.features.auth.services.auth_service import AuthService
from wcag_audit.features.auth.utils.security import decode_access_token
from wcag_audit.platform.config import settings
from wcag_audit.platform.db.session import get_db
from wcag_audit.platform.logger import get_logger
from wcag_audit.platform.response import api_response
from wcag_audit.platform.services.email import send_magic_link_email

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])
security = HTTPBearer(auto_error=False)


def _token_from_request(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    if credentials:
        return credentials.credentials
    return request.cookies.get(settings.AUTH_COOKIE_NAME)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Dependency to get the current authenticated user.
    Accepts a bearer token or the session cookie set by the magic-link callback.
    """
    token = _token_from_request(request, credentials)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_access_token(token)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("sub")
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await AuthService(db).get_user_by_id(user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """Same as get_current_user, but anonymous callers get None."""
    try:
        return await get_current_user(request, credentials, db)
    except HTTPException:
        return None


@router.post(
    "/magic-link",
    status_code=status.HTTP_200_OK,
    summary="Send a magic login link",
    description="Create the account on first use and email a single-use login link",
)
async def request_magic_link(
    request: MagicLinkRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
):
    auth_service = AuthService(db)
    user, token = await auth_service.issue_magic_link(request.email)

    link = f"{settings.APP_BASE_URL.rstrip('/')}/auth/callback?{urlencode({'token': token})}"
    background_tasks.add_task(send_magic_link_email, to_email=user.email, link=link)

    return api_response(
        message="Email envoyé ! Cliquez sur le lien pour vous connecter.",
        status_code=status.HTTP_200_OK,
    )


@router.get("/callback", summary="Consume a magic link")
async def magic_link_callback(
    token: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    token_response = await AuthService(db).consume_magic_link(token)

    if "application/json" in request.headers.get("accept", ""):
        response = api_response(data=token_response, message="Login successful")
    else:
        response = RedirectResponse(url="/dashboard", status_code=status.HTTP_303_SEE_OTHER)

    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token_response.access_token,
        max_age=token_response.expires_in,
        httponly=True,
        samesite="lax",
        secure=settings.ENVIRONMENT == "production",
    )
    return response


@router.get("/me", summary="Current user")
async def me(current_user: User = Depends(get_current_user)):
    return api_response(data=UserResponse.model_validate(current_user), message="User retrieved")


@router.post("/logout", summary="Logout user")
async def logout():
    response = api_response(data=None, message="Logout successful")
    response.delete_cookie(settings.AUTH_COOKIE_NAME)
    return response
