"""Shared Pydantic schemas for Nester-Engine."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    service: str = "nester-engine"


class ErrorResponse(BaseModel):
    error: str
    code: str
    detail: str = ""


class Acknowledgement(BaseModel):
    """Body returned to the workflow engine by callback handlers."""

    success: bool
    duplicate: bool = False
    error: str | None = None
