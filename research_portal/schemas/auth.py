"""Request/response schemas for auth endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    """
    Credentials for login. Missing fields are rejected by the handler with 400.

    No length limits here: a non-matching credential of any length gets the generic 401.
    """

    username: str | None = Field(default=None, description="Username")
    password: str | None = Field(default=None, description="Password")


class Identity(BaseModel):
    """
    Sanitized user record stored in the session and returned by the API.

    There is deliberately no password field: validating a User ORM object
    through this model drops the hash.
    """

    model_config = ConfigDict(from_attributes=True, extra="ignore")

    id: int
    username: str
    name: str
    email: str
    role: str


class UserResponse(BaseModel):
    """Response for login and GET /me."""

    user: Identity


class MessageResponse(BaseModel):
    """Plain message body (logout, errors)."""

    message: str


class UsersListResponse(BaseModel):
    """Response for GET /users (admin only)."""

    users: list[Identity]
