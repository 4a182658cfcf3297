"""Response bodies shared by the app's endpoints."""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Body returned for any ApiException."""

    success: bool = False
    error: str
    details: dict | None = None


class HealthResponse(BaseModel):
    status: str = "healthy"
    service: str = "langgraph-pr-reviewer"
    ai_provider: str | None = None
    ai_model: str | None = None
