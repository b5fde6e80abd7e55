"""Application user and session models."""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

from inventory.models.common import CamelModel, UserReference, blank_to_none, wildcard_to_none


class Role(str, Enum):
    """Coarse access tier."""

    ADMIN = "admin"
    USER = "user"


class AppUser(CamelModel):
    """A user that equipment can be assigned to."""

    id: Optional[str] = Field(default=None, validation_alias=AliasChoices("id", "_id"))
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Role = Role.USER

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def blank_names_are_absent(cls, v: Any) -> Any:
        return blank_to_none(v)

    @property
    def full_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) or self.username

    def reference(self) -> UserReference:
        """Reference to this user for assignment and stamps."""
        return UserReference(id=self.id, username=self.username, email=self.email)


class UserQuery(BaseModel):
    """Filters and page cursor for the user management list."""

    search: Optional[str] = None
    role: Optional[Role] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1)

    @field_validator("search", "role", mode="before")
    @classmethod
    def drop_wildcards(cls, v: Any) -> Any:
        return wildcard_to_none(v)

    def matches(self, user: AppUser) -> bool:
        """Apply the search term and role filter to a single user."""
        if self.role is not None and user.role != self.role:
            return False
        if self.search:
            needle = self.search.lower()
            haystack = (user.username, user.email, user.first_name or "", user.last_name or "")
            return any(needle in field.lower() for field in haystack)
        return True


class SessionUser(BaseModel):
    """Minimal descriptor of the signed-in user kept with the token."""

    id: Optional[str] = None
    username: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class Session(BaseModel):
    """Authenticated identity and credential material held by the client."""

    token: str
    user: SessionUser
    expiry: Optional[datetime] = None
