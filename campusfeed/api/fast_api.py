"""
FastAPI Router: Authentication, Profiles, Moderation and the Post Feed

This module defines the HTTP API endpoints exposed by the backend. It handles:
- Account registration, login and logout
- Reading and updating the caller's own profile (with image uploads)
- Privileged account listing and role promotion
- The post feed: listing, creating and deleting posts

Each endpoint validates input via Pydantic models (or form fields for
multipart uploads). Domain errors raised by the core are turned into HTTP
responses by the exception handlers installed in `campusfeed.main`.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile, status
from sqlalchemy.orm import Session

from campusfeed.api.models import (
    AccountListing,
    BioPreview,
    FeedPost,
    PostCreated,
    Profile,
    RoleChange,
    UserCredentials,
    UserData,
)
from campusfeed.api.utils import (
    clear_session_cookie,
    get_current_user,
    get_db,
    get_session_token,
    get_settings,
    set_session_cookie,
)
from campusfeed.database.config.config import Settings
from campusfeed.database.core import accounts, feed, sessions
from campusfeed.database.entities import User
from campusfeed.errors import InvalidCredentialsError, NotFoundError
from campusfeed.logging import logger
from campusfeed.services.authorization import Action, authorize, preview_bio
from campusfeed.services.storage import upload_image

router = APIRouter()
"""Creates the FastAPI router in which we define its routes"""


def _upload(request: Request, file: Optional[UploadFile], user_id: int, kind: str) -> Optional[str]:
    if file is None or not file.filename:
        return None
    app_settings: Settings = request.app.state.settings
    return upload_image(
        request.app.state.blob_store,
        data=file.file.read(app_settings.MAX_UPLOAD_BYTES + 1),
        content_type=file.content_type,
        filename=file.filename,
        user_id=user_id,
        kind=kind,
        max_bytes=app_settings.MAX_UPLOAD_BYTES,
    )


@router.get("/health")
def health():
    return {"status": "ok"}


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=Profile)
def register(
    data: UserData,
    response: Response,
    db: Session = Depends(get_db),
    app_settings: Settings = Depends(get_settings),
):
    """
    Register a new account and start a session for it.

    Request Body
    ------------
    UserData {email: str, username: str, password: str}

    Raises
    ------
    400 if the email is outside the institutional domain.
    409 if the email is already registered.
    """
    account_id = accounts.register(
        db, email=data.email, username=data.username, password=data.password, app_settings=app_settings
    )
    token = sessions.issue(db, account_id)
    set_session_cookie(response, token, app_settings)
    return accounts.get_profile(db, account_id)


@router.post("/login", response_model=Profile)
def login(
    data: UserCredentials,
    response: Response,
    db: Session = Depends(get_db),
    app_settings: Settings = Depends(get_settings),
):
    """
    Authenticate and set the session cookie.

    Unknown emails and wrong passwords produce the same 401 response.
    """
    try:
        account_id = accounts.authenticate(db, email=data.email, password=data.password)
    except (NotFoundError, InvalidCredentialsError):
        logger.info("Failed login attempt")
        raise InvalidCredentialsError()

    token = sessions.issue(db, account_id)
    set_session_cookie(response, token, app_settings)
    logger.info("Account {} logged in", account_id)
    return accounts.get_profile(db, account_id)


@router.post("/logout")
def logout(
    response: Response,
    token: Optional[str] = Depends(get_session_token),
    db: Session = Depends(get_db),
    app_settings: Settings = Depends(get_settings),
):
    """Destroy the current session (if any) and clear the cookie."""
    sessions.destroy(db, token)
    clear_session_cookie(response, app_settings)
    return {"success": True}


@router.get("/me", response_model=Profile)
def me(user: User = Depends(get_current_user)):
    return user


@router.post("/update-profile", response_model=Profile)
def update_profile(
    request: Request,
    username: Optional[str] = Form(None),
    bio: Optional[str] = Form(None),
    avatar: Optional[UploadFile] = File(None),
    banner: Optional[UploadFile] = File(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Partially update the caller's profile.

    Omitted fields are left unchanged. Images are uploaded before the
    profile row is touched, so a failed upload changes nothing.
    """
    avatar_url = _upload(request, avatar, user.id, "avatar")
    banner_url = _upload(request, banner, user.id, "banner")
    return accounts.update_profile(
        db, user.id, username=username, bio=bio, avatar=avatar_url, banner=banner_url
    )


@router.post("/profile/preview")
def profile_preview(data: BioPreview, user: User = Depends(get_current_user)):
    """Show how a bio would be rendered once saved by the caller."""
    return {"bio": preview_bio(user.role_enum, data.bio)}


@router.get("/users", response_model=List[AccountListing])
def list_users(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Privileged account listing (moderators and admins)."""
    authorize(user.role_enum, Action.LIST_ACCOUNTS, requestor_id=user.id)
    return accounts.list_accounts(db)


@router.post("/users/{account_id}/role", response_model=AccountListing)
def promote_user(
    account_id: int,
    data: RoleChange,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Promote an account to a higher role (admins only)."""
    authorize(user.role_enum, Action.PROMOTE_ACCOUNT, resource_owner_id=account_id, requestor_id=user.id)
    return accounts.promote(db, account_id, data.role)


@router.get("/posts", response_model=List[FeedPost])
def get_posts(db: Session = Depends(get_db), app_settings: Settings = Depends(get_settings)):
    """Most recent posts, newest first."""
    return list(feed.list_recent(db, limit=app_settings.FEED_PAGE_SIZE, app_settings=app_settings))


@router.post("/posts", response_model=PostCreated)
def create_post(
    request: Request,
    content: str = Form(""),
    image: Optional[UploadFile] = File(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    app_settings: Settings = Depends(get_settings),
):
    """Create a post with optional image. Text is validated before any upload."""
    feed.validate_post_text(content, app_settings.POST_MAX_LENGTH)
    image_url = _upload(request, image, user.id, "post")
    post_id = feed.create_post(db, user.id, content, image_url=image_url, app_settings=app_settings)
    return PostCreated(post_id=post_id)


@router.delete("/posts/{post_id}")
def delete_post(post_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Delete a post. Allowed for its author, moderators and admins."""
    feed.delete_post(db, post_id, requestor_id=user.id)
    return {"success": True}
