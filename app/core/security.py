"""Request authentication: bearer user ids and signed Clerk webhooks."""

import json
import logging
from typing import Optional

from fastapi import HTTPException, Request
from svix.webhooks import Webhook, WebhookVerificationError

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "
SVIX_HEADERS = ("svix-id", "svix-timestamp", "svix-signature")


def parse_bearer_user_id(authorization: Optional[str]) -> Optional[str]:
    """Clerk user id from an "Authorization: Bearer <id>" header, or None."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    return authorization[len(BEARER_PREFIX):].strip() or None


async def verify_clerk_webhook(request: Request, webhook_secret: str) -> dict:
    """
    Check the svix signature of a Clerk webhook and return its parsed JSON body.

    Raises:
        HTTPException: 500 if no secret is configured, 400 if headers are
            missing or the signature does not match the body
    """
    if not webhook_secret:
        logger.error("[WEBHOOK] WEBHOOK_SECRET is not configured")
        raise HTTPException(status_code=500, detail="WEBHOOK_SECRET not configured")

    headers = {name: request.headers.get(name) for name in SVIX_HEADERS}
    missing = [name for name, value in headers.items() if not value]
    if missing:
        raise HTTPException(status_code=400, detail=f"Missing svix headers: {', '.join(missing)}")

    body = await request.body()
    try:
        Webhook(webhook_secret).verify(body, headers)
    except (WebhookVerificationError, ValueError) as e:
        logger.warning(f"[WEBHOOK] Rejected {headers['svix-id']}: {e}")
        raise HTTPException(status_code=400, detail="Webhook verification failed")

    return json.loads(body)
