"""
Pydantic schemas for request/response validation.

Account emails only appear in :class:`AccountListing`, the privileged
listing; every other account view leaves them out.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UserCredentials(BaseModel):
    email: str = Field(..., description="Institutional email address")
    password: str


class UserData(BaseModel):
    email: str = Field(..., description="Institutional email address")
    username: str
    password: str


class Profile(BaseModel):
    """Own profile as returned by `/me`."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    role: str
    bio: Optional[str] = None
    avatar: Optional[str] = None
    banner: Optional[str] = None


class AccountListing(BaseModel):
    """Privileged view of an account, including the email."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    username: str
    role: str


class RoleChange(BaseModel):
    role: str = Field(..., description="'user' | 'moderator' | 'admin'")


class BioPreview(BaseModel):
    bio: str


class FeedPost(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    content: str
    image_url: Optional[str] = None
    created_at: datetime
    user_id: int
    username: str
    avatar: Optional[str] = None
    role: str


class PostCreated(BaseModel):
    success: bool = True
    post_id: int
