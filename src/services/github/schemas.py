"""Webhook response bodies."""

from pydantic import BaseModel


class WebhookResponse(BaseModel):
    """Outcome of a pull_request / pull_request_review_comment delivery."""

    message: str
    pr: str | None = None
    action: str | None = None
    thread_id: str | None = None


class PingResponse(BaseModel):
    message: str = "pong"
    zen: str = ""
