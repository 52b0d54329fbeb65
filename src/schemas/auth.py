from pydantic import BaseModel, Field


class TokenData(BaseModel):
    sub: str | None = Field(
        default=None,
        description="Subject (user identifier) of the token",
    )
    scopes: list[str] = Field(
        default_factory=list,
        description="Scopes/permissions associated with the token",
    )


class AuthenticatedUser(BaseModel):
    """The caller, as established by a valid bearer token."""

    id: str
    scopes: list[str] = Field(default_factory=list)
