"""
Feed store operations: create, list and delete posts.

Deletion always asks the authorization engine; the feed never decides
ownership or role rules itself.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterator, Optional

from sqlalchemy.orm import Session

from campusfeed.database.config.config import Settings, settings
from campusfeed.database.core.accounts import encoded_length
from campusfeed.database.daos import PostDao, UserDao
from campusfeed.errors import NotFoundError, Unauthenticated, ValidationError
from campusfeed.logging import logger
from campusfeed.services.authorization import Action, authorize


@dataclass(frozen=True)
class FeedEntry:
    """A post joined with the author's display fields."""

    id: int
    content: str
    image_url: Optional[str]
    created_at: datetime
    user_id: int
    username: str
    avatar: Optional[str]
    role: str


def validate_post_text(text: Optional[str], max_length: Optional[int] = None) -> str:
    """Return the trimmed text, or raise :class:`ValidationError`."""
    max_length = max_length or settings.POST_MAX_LENGTH
    if not text or not text.strip():
        raise ValidationError("Post content is required")
    if len(text) > max_length:
        raise ValidationError(f"Post content is too long (max {max_length} characters)")
    encoded_length(text, "Post content")
    return text.strip()


def create_post(
    db: Session,
    author_id: int,
    text: str,
    image_url: Optional[str] = None,
    app_settings: Optional[Settings] = None,
) -> int:
    app_settings = app_settings or settings
    content = validate_post_text(text, app_settings.POST_MAX_LENGTH)
    post = PostDao(db).insert(user_id=author_id, content=content, image_url=image_url)
    db.commit()
    logger.info("Post created: id={} author={}", post.id, author_id)
    return post.id


def list_recent(db: Session, limit: int = 100, app_settings: Optional[Settings] = None) -> Iterator[FeedEntry]:
    """
    Lazily yield the newest posts, capped at ``FEED_PAGE_SIZE`` of
    ``app_settings`` (the process-wide ``settings`` when omitted).

    Ordered by creation time descending (ties broken by id). Nothing is
    kept between calls: every call runs the query again.
    """
    app_settings = app_settings or settings
    limit = max(0, min(limit, app_settings.FEED_PAGE_SIZE))
    for post, author in PostDao(db).iter_recent(limit):
        yield FeedEntry(
            id=post.id,
            content=post.content,
            image_url=post.image_url,
            created_at=post.created_at,
            user_id=author.id,
            username=author.username,
            avatar=author.avatar,
            role=author.role,
        )


def delete_post(db: Session, post_id: int, requestor_id: int) -> None:
    """
    Delete a post on behalf of ``requestor_id``.

    Raises
    ------
    NotFoundError
        If the post does not exist.
    ForbiddenError
        If the requestor is neither the author nor a moderator/admin.
    """
    requestor = UserDao(db).get_by_id(requestor_id)
    if requestor is None:
        raise Unauthenticated()

    dao = PostDao(db)
    post = dao.get(post_id)
    if post is None:
        raise NotFoundError("Post not found")

    authorize(requestor.role_enum, Action.DELETE_POST, resource_owner_id=post.user_id, requestor_id=requestor_id)

    dao.delete(post_id)
    db.commit()
    logger.info("Post {} deleted by account {}", post_id, requestor_id)
