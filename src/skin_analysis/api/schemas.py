"""Request models for the HTTP surface."""

from pydantic import BaseModel, Field


class SignInRequest(BaseModel):
    """Email and password credentials."""

    email: str = Field(min_length=3)
    password: str = Field(min_length=1)
