"""Pydantic schemas for the auth endpoints."""

from typing import Optional

from pydantic import BaseModel, Field


class Credentials(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1)


class PasswordResetRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    redirect_to: Optional[str] = None


class IdentityResponse(BaseModel):
    id: str
    email: str = ""


class SessionResponse(BaseModel):
    identity: Optional[IdentityResponse] = None


class SignUpResponse(BaseModel):
    success: bool = True
    identity: Optional[IdentityResponse] = None
    confirmation_required: bool = False


class MessageResponse(BaseModel):
    success: bool = True
    message: str
