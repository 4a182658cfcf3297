"""GitHub webhook routes."""

import json

from fastapi import APIRouter, BackgroundTasks, Depends, Request

from src.core.logging import get_logger
from src.core.security import verified_github_body
from src.services.github.schemas import PingResponse, WebhookResponse
from src.services.github.service import handle_pull_request_event

logger = get_logger("github.routes")

router = APIRouter()


@router.post("/webhook/github")
async def github_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    body: bytes = Depends(verified_github_body),
):
    """Schedule a review run for pull request and review comment deliveries."""
    event = request.headers.get("X-GitHub-Event")
    delivery_id = request.headers.get("X-GitHub-Delivery")
    logger.info(f"Webhook received: event={event}, delivery={delivery_id}")

    payload = json.loads(body)

    if event == "ping":
        return PingResponse(zen=payload.get("zen", ""))

    result = await handle_pull_request_event(event, payload, background_tasks, delivery_id)
    return WebhookResponse(**result)
