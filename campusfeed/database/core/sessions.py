"""
Session manager.

Each token goes ``Unauthenticated -> Active -> Destroyed``. A token becomes
Active only through :func:`issue`, which callers invoke after a successful
registration or authentication. The raw token is returned to the client and
never stored: the table keeps its SHA-256 digest.

Sessions carry an absolute TTL (``settings.SESSION_TTL_MINUTES``). Expired
rows resolve as unauthenticated and are swept by :func:`purge_expired`.
"""

import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.orm import Session

from campusfeed.database.config.config import settings
from campusfeed.database.daos import SessionDao
from campusfeed.logging import logger


def _digest(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(moment: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    return moment if moment.tzinfo is not None else moment.replace(tzinfo=timezone.utc)


def issue(db: Session, account_id: int, ttl: Optional[timedelta] = None) -> str:
    """Bind a fresh, unguessable token to ``account_id`` and return it."""
    token = secrets.token_urlsafe(32)
    ttl = ttl if ttl is not None else timedelta(minutes=settings.SESSION_TTL_MINUTES)
    SessionDao(db).insert(token_hash=_digest(token), user_id=account_id, expires_at=_now() + ttl)
    db.commit()
    return token


def resolve(db: Session, token: Optional[str]) -> Optional[int]:
    """Return the account id bound to ``token``, or None when unauthenticated."""
    if not token:
        return None
    dao = SessionDao(db)
    row = dao.get(_digest(token))
    if row is None:
        return None
    if _as_utc(row.expires_at) <= _now():
        dao.delete(row.token_hash)
        db.commit()
        return None
    return row.user_id


def destroy(db: Session, token: Optional[str]) -> None:
    """End a session. Unknown or already destroyed tokens are a no-op."""
    if not token:
        return
    if SessionDao(db).delete(_digest(token)):
        logger.info("Session destroyed")
    db.commit()


def purge_expired(db: Session) -> int:
    """Delete every expired session and return how many were removed."""
    removed = SessionDao(db).delete_expired(_now())
    db.commit()
    if removed:
        logger.debug("Purged {} expired sessions", removed)
    return removed
