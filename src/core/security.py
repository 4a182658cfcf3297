"""GitHub webhook signatures (X-Hub-Signature-256)."""

import hashlib
import hmac

from fastapi import Request

from src.config import settings
from src.core.exceptions import SignatureVerificationError
from src.core.logging import get_logger

logger = get_logger("security")

SIGNATURE_HEADER = "X-Hub-Signature-256"


def sign_github_payload(payload: bytes, secret: str) -> str:
    digest = hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()
    return f"sha256={digest}"


def verify_github_signature(payload: bytes, signature: str) -> bool:
    """Check a delivery against GITHUB_WEBHOOK_SECRET.

    Without a configured secret every delivery is accepted. With one, a
    missing header is rejected.
    """
    secret = settings.github_webhook_secret
    if not secret:
        logger.warning("GITHUB_WEBHOOK_SECRET not set, accepting unsigned delivery")
        return True
    if not signature:
        return False
    return hmac.compare_digest(sign_github_payload(payload, secret), signature)


async def verified_github_body(request: Request) -> bytes:
    """FastAPI dependency returning the raw body once its signature checks out."""
    body = await request.body()
    if not verify_github_signature(body, request.headers.get(SIGNATURE_HEADER, "")):
        logger.warning(f"Rejected delivery {request.headers.get('X-GitHub-Delivery')}: bad signature")
        raise SignatureVerificationError("GitHub webhook")
    return body
