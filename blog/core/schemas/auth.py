"""Authentication schema definitions."""
from pydantic import BaseModel, Field


class AuthenticationRequest(BaseModel):
    username: str = Field("", description="Username")
    password: str = Field("", description="Plaintext password")


class TokenResponse(BaseModel):
    token: str


class ErrorResponse(BaseModel):
    error: str
