"""
Credential store operations: registration, authentication and profiles.

Passwords are hashed with bcrypt (salted, one-way) and compared with
``bcrypt.checkpw``, which runs in constant time for a given stored hash.
Email uniqueness is enforced by the database's unique constraint; a
duplicate insert surfaces as ``IntegrityError`` and becomes
:class:`ConflictError`.
"""

from functools import lru_cache
from typing import List, Optional, Union

import bcrypt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campusfeed.database.config.config import Settings, settings
from campusfeed.database.daos import UserDao
from campusfeed.database.entities import Role, User
from campusfeed.errors import (
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
    ValidationError,
)
from campusfeed.logging import logger
from campusfeed.services.authorization import sanitize_bio

# bcrypt only looks at the first 72 bytes of a password.
MAX_PASSWORD_BYTES = 72


def encoded_length(value: str, field: str) -> int:
    """UTF-8 length of ``value``; lone surrogates raise :class:`ValidationError`."""
    try:
        return len(value.encode("utf-8"))
    except UnicodeEncodeError:
        raise ValidationError(f"{field} is not valid text")


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def is_institutional_email(email: str, domain: Optional[str] = None) -> bool:
    """True when ``email`` has a non-empty local part under the institutional domain."""
    domain = (domain or settings.INSTITUTIONAL_EMAIL_DOMAIN).lower()
    local, sep, host = normalize_email(email).rpartition("@")
    return bool(sep) and bool(local) and host == domain


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        raw = password.encode("utf-8")
    except UnicodeEncodeError:
        return False
    if len(raw) > MAX_PASSWORD_BYTES:
        return False
    return bcrypt.checkpw(raw, password_hash.encode("ascii"))


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    # Checked against when the email is unknown, so both failure paths cost a bcrypt round.
    return hash_password("campusfeed-dummy-password")


def register(
    db: Session,
    email: str,
    username: str,
    password: str,
    app_settings: Optional[Settings] = None,
) -> int:
    """
    Create a new account with role ``user``.

    ``app_settings`` supplies the email domain and bcrypt cost; the
    process-wide ``settings`` are used when it is omitted.

    Returns
    -------
    int
        The new account id.

    Raises
    ------
    ValidationError
        If the email is outside the institutional domain, or username/password
        are empty, not valid text, or the password is too long.
    ConflictError
        If the email is already registered.
    """
    app_settings = app_settings or settings
    domain = app_settings.INSTITUTIONAL_EMAIL_DOMAIN
    if not is_institutional_email(email, domain):
        raise ValidationError(f"Use your institutional email (@{domain})")
    encoded_length(email, "Email")
    username = (username or "").strip()
    if not username:
        raise ValidationError("Username is required")
    encoded_length(username, "Username")
    if not password:
        raise ValidationError("Password is required")
    if encoded_length(password, "Password") > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")

    email = normalize_email(email)
    password_hash = hash_password(password, app_settings.BCRYPT_ROUNDS)
    try:
        user = UserDao(db).insert(email=email, username=username, password_hash=password_hash)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("An account with that email already exists")

    logger.info("Account registered: id={} username={}", user.id, user.username)
    return user.id


def authenticate(db: Session, email: str, password: str) -> int:
    """
    Check a password against the stored hash.

    Raises
    ------
    NotFoundError
        If no account has that email.
    InvalidCredentialsError
        If the password does not match.
    """
    user = UserDao(db).get_by_email(normalize_email(email))
    if user is None:
        verify_password(password or "", _dummy_hash())
        raise NotFoundError("No account with that email")
    if not verify_password(password or "", user.password_hash):
        raise InvalidCredentialsError()
    return user.id


def get_profile(db: Session, account_id: int) -> User:
    user = UserDao(db).get_by_id(account_id)
    if user is None:
        raise NotFoundError("Account not found")
    return user


def update_profile(
    db: Session,
    account_id: int,
    username: Optional[str] = None,
    bio: Optional[str] = None,
    avatar: Optional[str] = None,
    banner: Optional[str] = None,
) -> User:
    """
    Partial profile update; ``None`` leaves a field unchanged.

    The bio is passed through the sanitization policy of the author's role
    before being stored.
    """
    user = get_profile(db, account_id)
    if username is not None:
        username = username.strip()
        if not username:
            raise ValidationError("Username cannot be empty")
        encoded_length(username, "Username")
    if bio is not None:
        encoded_length(bio, "Bio")
        bio = sanitize_bio(user.role_enum, bio)

    UserDao(db).update_fields(user, {"username": username, "bio": bio, "avatar": avatar, "banner": banner})
    db.commit()
    return user


def promote(db: Session, account_id: int, new_role: Union[Role, str]) -> User:
    """
    Raise an account's role. Callers must have authorized the administrative
    action beforehand.

    Raises
    ------
    NotFoundError
        If the account does not exist.
    ValidationError
        If the role is unknown or lower than the current one.
    """
    try:
        role = new_role if isinstance(new_role, Role) else Role(new_role)
    except ValueError:
        raise ValidationError(f"Unknown role: {new_role}")

    user = get_profile(db, account_id)
    if role.rank < user.role_enum.rank:
        raise ValidationError("Roles can only be promoted, not demoted")

    UserDao(db).set_role(user, role)
    db.commit()
    logger.info("Account {} promoted to {}", user.id, role.value)
    return user


def list_accounts(db: Session) -> List[User]:
    return UserDao(db).list_all()
