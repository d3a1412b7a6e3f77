from datetime import datetime
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.orm import Session

from campusfeed.database.entities import UserSession


class SessionDao:
    """Persistence of login sessions keyed by token digest."""

    def __init__(self, db: Session):
        self.db = db

    def insert(self, token_hash: str, user_id: int, expires_at: datetime) -> UserSession:
        row = UserSession(token_hash=token_hash, user_id=user_id, expires_at=expires_at)
        self.db.add(row)
        self.db.flush()
        return row

    def get(self, token_hash: str) -> Optional[UserSession]:
        return self.db.get(UserSession, token_hash)

    def delete(self, token_hash: str) -> int:
        result = self.db.execute(delete(UserSession).where(UserSession.token_hash == token_hash))
        return result.rowcount or 0

    def delete_expired(self, now: datetime) -> int:
        result = self.db.execute(delete(UserSession).where(UserSession.expires_at <= now))
        return result.rowcount or 0
