import logging
from typing import Annotated, Optional

from fastapi import Request, Depends
from firebase_admin.auth import verify_session_cookie
from firebase_admin.exceptions import FirebaseError

from config import SESSION_COOKIE_NAME
from errors import AuthenticationRequired
from models.user import User
from services.posts import PostService
from services.s3 import S3Service

logger = logging.getLogger(__name__)


async def get_optional_user(request: Request) -> Optional[User]:
    """
    Verify the session cookie if present and return user info.
    A missing or invalid cookie yields None.
    """
    session_cookie = request.cookies.get(SESSION_COOKIE_NAME)
    if not session_cookie:
        return None

    try:
        decoded_claims = verify_session_cookie(session_cookie, check_revoked=True, clock_skew_seconds=10)
    except (ValueError, FirebaseError) as e:
        logger.warning("Invalid session cookie: %s", e)
        return None

    return User(
        user_id=decoded_claims["uid"],
        email=decoded_claims.get("email"),
        name=decoded_claims.get("name"),
    )


async def get_current_user(user: Annotated[Optional[User], Depends(get_optional_user)]) -> User:
    """Require a verified session cookie"""
    if user is None:
        raise AuthenticationRequired("Authentication required")
    return user


async def get_post_service(request: Request) -> PostService:
    """Get post service from app state"""
    return request.app.state.post_service


async def get_s3_service(request: Request) -> S3Service:
    """Get S3 service from app state"""
    return request.app.state.s3_service


# Type annotations for dependency injection
OptionalUser = Annotated[Optional[User], Depends(get_optional_user)]
CurrentUser = Annotated[User, Depends(get_current_user)]
Posts = Annotated[PostService, Depends(get_post_service)]
S3 = Annotated[S3Service, Depends(get_s3_service)]
