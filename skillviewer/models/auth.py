"""Authentication models for the skill viewer sign-in API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class User(BaseModel):
    id: int | str
    name: str | None = None
    email: str | None = None
    role: str | None = None


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class SignupRequest(LoginRequest):
    name: str = ""


class LoginResult(BaseModel):
    token: str
    user: User | None = None
