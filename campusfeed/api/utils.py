"""
Request dependencies shared by the routers: database sessions, the
session cookie and the authenticated account.
"""

from typing import Iterator, Optional

from fastapi import Depends, Request, Response
from sqlalchemy.orm import Session

from campusfeed.database.config.config import Settings
from campusfeed.database.config.connection import session_scope
from campusfeed.database.core import accounts, sessions
from campusfeed.database.entities import User
from campusfeed.errors import NotFoundError, Unauthenticated


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request) -> Iterator[Session]:
    yield from session_scope(request.app.state.session_factory)


def get_session_token(request: Request) -> Optional[str]:
    return request.cookies.get(request.app.state.settings.SESSION_COOKIE_NAME)


def get_current_user(
    token: Optional[str] = Depends(get_session_token),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the session cookie to an account, or raise ``Unauthenticated``."""
    account_id = sessions.resolve(db, token)
    if account_id is None:
        raise Unauthenticated()
    try:
        return accounts.get_profile(db, account_id)
    except NotFoundError:
        raise Unauthenticated()


def set_session_cookie(response: Response, token: str, app_settings: Settings) -> None:
    response.set_cookie(
        key=app_settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=app_settings.SESSION_TTL_MINUTES * 60,
        httponly=True,
        secure=app_settings.COOKIE_SECURE,
        samesite="none" if app_settings.COOKIE_SECURE else "lax",
    )


def clear_session_cookie(response: Response, app_settings: Settings) -> None:
    response.delete_cookie(key=app_settings.SESSION_COOKIE_NAME)
