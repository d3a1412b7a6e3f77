from typing import Iterator, Optional, Tuple

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from campusfeed.database.entities import Post, User


class PostDao:
    """CRUD over `post`."""

    def __init__(self, db: Session):
        self.db = db

    def insert(self, user_id: int, content: str, image_url: Optional[str]) -> Post:
        post = Post(user_id=user_id, content=content, image_url=image_url)
        self.db.add(post)
        self.db.flush()
        return post

    def get(self, post_id: int) -> Optional[Post]:
        return self.db.get(Post, post_id)

    def delete(self, post_id: int) -> int:
        result = self.db.execute(delete(Post).where(Post.id == post_id))
        return result.rowcount or 0

    def iter_recent(self, limit: int) -> Iterator[Tuple[Post, User]]:
        """Yield ``(post, author)`` pairs, newest first."""
        stmt = (
            select(Post, User)
            .join(User, Post.user_id == User.id)
            .order_by(Post.created_at.desc(), Post.id.desc())
            .limit(limit)
        )
        for post, author in self.db.execute(stmt):
            yield post, author
