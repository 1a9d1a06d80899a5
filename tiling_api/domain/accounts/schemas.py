"""Accounts domain schemas - Pydantic models for validation"""

from pydantic import BaseModel, Field

from ...shared.responses import UserInfo


class GoogleSignInRequest(BaseModel):
    idToken: str = Field(..., min_length=1)


class AuthResponse(BaseModel):
    token: str
    user: UserInfo
