"""
The `entities` package defines the ORM models of the application,
representing the database tables as Python classes via SQLAlchemy.

These entity classes are the foundation of the persistence layer,
used by DAOs (`daos` package) to perform CRUD operations.

Contents
--------
- User
    Represents a registered account.
    * Stores email (unique), username and bcrypt password hash
    * Holds the role (user / moderator / admin)
    * Keeps profile fields: bio, avatar and banner references

- UserSession
    Represents an active login session.
    * Keyed by the SHA-256 digest of the opaque session token
    * Bound to exactly one user, with creation and expiry timestamps

- Post
    Represents a feed post.
    * Stores author (user_id), trimmed text content and optional image URL
    * Records creation timestamp; cascades away with its author
"""

from campusfeed.database.entities.user import Role, User
from campusfeed.database.entities.session import UserSession
from campusfeed.database.entities.post import Post

__all__ = ["Role", "User", "UserSession", "Post"]
