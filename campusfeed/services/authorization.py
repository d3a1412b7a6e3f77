"""
Role-based authorization decisions.

Every role check in the application goes through this module: post
deletion, the privileged account listing, role promotion and the
sanitization policy applied to profile bios. Decisions are pure functions
of ``(role, action, resource_owner_id, requestor_id)``; nothing here
touches storage.

Security note
-------------
Bios written by moderators and admins are stored and rendered as raw
markup, without any allow-listing. Anyone viewing such a profile is
exposed to whatever markup a privileged account writes. This is the
observed product behavior and is kept on purpose until it is reviewed.
"""

import enum
import html
from typing import Optional, Union

from campusfeed.database.entities import Role
from campusfeed.errors import ForbiddenError

PRIVILEGED_ROLES = frozenset({Role.MODERATOR, Role.ADMIN})


class Action(str, enum.Enum):
    RENDER_RAW_MARKUP = "render_raw_markup"
    DELETE_POST = "delete_post"
    LIST_ACCOUNTS = "list_accounts"
    PROMOTE_ACCOUNT = "promote_account"


def _as_role(role: Union[Role, str]) -> Role:
    return role if isinstance(role, Role) else Role(role)


def is_allowed(
    role: Union[Role, str],
    action: Action,
    resource_owner_id: Optional[int] = None,
    requestor_id: Optional[int] = None,
) -> bool:
    """Return whether ``role`` may perform ``action``.

    Args:
        role: Role of the requesting account.
        action: The action being attempted.
        resource_owner_id: Owner of the target resource, when there is one.
        requestor_id: Account id of the requester.
    """
    role = _as_role(role)

    if action is Action.DELETE_POST:
        is_owner = requestor_id is not None and requestor_id == resource_owner_id
        return is_owner or role in PRIVILEGED_ROLES
    if action in (Action.RENDER_RAW_MARKUP, Action.LIST_ACCOUNTS):
        return role in PRIVILEGED_ROLES
    if action is Action.PROMOTE_ACCOUNT:
        return role is Role.ADMIN
    return False


def authorize(
    role: Union[Role, str],
    action: Action,
    resource_owner_id: Optional[int] = None,
    requestor_id: Optional[int] = None,
) -> None:
    """Raise :class:`ForbiddenError` unless :func:`is_allowed` grants the action."""
    if not is_allowed(role, action, resource_owner_id, requestor_id):
        raise ForbiddenError(f"Not allowed to {action.value.replace('_', ' ')}")


def sanitize_bio(role: Union[Role, str], bio: str) -> str:
    """Apply the bio sanitization policy for ``role``.

    Privileged roles keep their markup verbatim; everyone else gets the
    text HTML-escaped so a renderer can never interpret it as markup.
    """
    if is_allowed(role, Action.RENDER_RAW_MARKUP):
        return bio
    return html.escape(bio, quote=True)


def preview_bio(role: Union[Role, str], bio: str) -> str:
    """What a renderer will show for ``bio`` once saved by ``role``."""
    return sanitize_bio(role, bio)
