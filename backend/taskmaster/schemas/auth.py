from __future__ import annotations

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    username: str = Field(min_length=2, max_length=50)
    password: str = Field(min_length=8, max_length=200)


class UserOut(BaseModel):
    id: int
    username: str
    display_name: str
    role: str
    csrf_token: str | None = None  # For X-CSRF-Token header on mutating requests
