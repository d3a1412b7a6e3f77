from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from campusfeed.database.entities import Role, User


class UserDao:
    """CRUD over `user_account`. Callers own the transaction (commit/rollback)."""

    def __init__(self, db: Session):
        self.db = db

    def insert(self, email: str, username: str, password_hash: str, role: Role = Role.USER) -> User:
        """Add and flush a new account; raises ``IntegrityError`` on duplicate email."""
        user = User(email=email, username=username, password_hash=password_hash, role=role.value)
        self.db.add(user)
        self.db.flush()
        return user

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.scalars(select(User).where(User.email == email)).first()

    def update_fields(self, user: User, fields: Dict[str, Optional[str]]) -> User:
        """Set every non-None entry of ``fields`` on ``user``; None means unchanged."""
        for name, value in fields.items():
            if value is not None:
                setattr(user, name, value)
        self.db.flush()
        return user

    def set_role(self, user: User, role: Role) -> User:
        user.role = role.value
        self.db.flush()
        return user

    def list_all(self) -> List[User]:
        return list(self.db.scalars(select(User).order_by(User.id)))
