"""
The `daos` package provides the Data Access Layer for the application.

It is responsible for all interactions with the database entities,
encapsulating CRUD operations that support the core functionality
of the system. Each DAO operates on a specific entity and abstracts
away the direct SQLAlchemy queries, offering a cleaner API to the
service layer.

Contents
--------
- UserDao
    Handles account persistence:
    * Inserts accounts (uniqueness enforced by the database)
    * Fetches accounts by id or email
    * Applies partial profile updates and role changes
    * Lists accounts for privileged tooling

- SessionDao
    Manages login sessions:
    * Stores token digests bound to a user
    * Looks sessions up, deletes them, sweeps expired ones

- PostDao
    Manages feed posts:
    * Creates posts
    * Fetches the most recent posts joined with author fields
    * Deletes posts by id
"""

from campusfeed.database.daos.user_dao import UserDao
from campusfeed.database.daos.session_dao import SessionDao
from campusfeed.database.daos.post_dao import PostDao

__all__ = ["UserDao", "SessionDao", "PostDao"]
