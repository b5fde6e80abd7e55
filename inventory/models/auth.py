"""Auth request and response models with validation."""

import re
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

from inventory.models.user import Role

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


class LoginRequest(BaseModel):
    """Login credentials for authentication.

    Attributes:
        username: User's unique identifier
        password: User's password
    """

    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)

    @field_validator("username")
    @classmethod
    def username_trimmed(cls, v: str) -> str:
        """Strip surrounding whitespace and reject blank usernames."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("Username cannot be empty or whitespace only")
        return stripped


class RegisterRequest(BaseModel):
    """Self-service registration request.

    Attributes:
        username: Requested username; the backend owns the naming policy
        email: Contact address
        password: Chosen password
        confirm_password: Optional repeat of the password
        role: Requested role, 'user' when omitted
    """

    username: str = Field(..., min_length=1, max_length=100)
    email: str
    password: str = Field(..., min_length=1)
    confirm_password: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("confirm_password", "confirmPassword")
    )
    role: Role = Role.USER

    @field_validator("username")
    @classmethod
    def username_trimmed(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Username cannot be empty or whitespace only")
        return stripped

    @field_validator("email")
    @classmethod
    def email_well_formed(cls, v: str) -> str:
        v = v.strip()
        if not EMAIL_PATTERN.match(v):
            raise ValueError("Email address is not valid")
        return v


class AuthResponse(BaseModel):
    """Successful login/registration payload returned by the backend.

    Attributes:
        token: Bearer token for subsequent calls
        username: Authenticated username
        role: Role granted by the backend
        id: User id when the backend includes it
    """

    token: str
    username: str
    role: Role
    id: Optional[str] = Field(default=None, validation_alias=AliasChoices("id", "_id", "userId"))
