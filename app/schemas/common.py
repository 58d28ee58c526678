"""
Response envelopes shared by every endpoint.
"""
from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Body of every successful user operation."""
    message: str = Field(description="Human-readable confirmation of the action taken.")


class ErrorResponse(BaseModel):
    """Standard error envelope returned for all 4xx/5xx responses."""
    code: int = Field(description="HTTP status code, repeated in the body.")
    message: str = Field(description="What went wrong, including the offending field if any.")


class HealthResponse(BaseModel):
    status: str
    tables: list[str]
