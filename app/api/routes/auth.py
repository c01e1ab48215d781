"""Authentication routes (Clerk webhooks and user lookup)."""

import logging

from fastapi import APIRouter, Request, HTTPException, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_settings
from app.core.config import Settings
from app.core.security import verify_clerk_webhook
from app.services.user_service import UserService
from app.schemas.user import UserResponse, UserCreate, UserUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/webhooks/clerk")
async def clerk_webhook(
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_current_settings)
):
    """
    Handle Clerk webhook events.

    Events:
    - user.created: Create new user in database
    - user.updated: Update existing user
    - user.deleted: Delete user and their company
    - session.created: Update last sign in
    """
    payload = await verify_clerk_webhook(request, settings.webhook_secret)

    event_type = payload.get("type")
    data = payload.get("data", {})

    logger.info(f"[WEBHOOK] Received {event_type}")

    if event_type == "user.created":
        user = UserService.create_user(db, UserCreate.from_clerk(data), clerk_metadata=data)
        logger.info(f"[WEBHOOK] User created: {user.id}")

    elif event_type == "user.updated":
        user = UserService.update_user(db, data.get("id"), UserUpdate.from_clerk(data), clerk_metadata=data)
        if not user:
            logger.warning(f"[WEBHOOK] User not found: {data.get('id')}")

    elif event_type == "user.deleted":
        if not UserService.delete_user(db, data.get("id")):
            logger.warning(f"[WEBHOOK] User not found: {data.get('id')}")

    elif event_type == "session.created":
        if not UserService.update_last_sign_in(db, data.get("user_id")):
            logger.warning(f"[WEBHOOK] User not found: {data.get('user_id')}")

    else:
        logger.info(f"[WEBHOOK] Unhandled event type: {event_type}")

    return {"status": "success", "event": event_type}


@router.get("/me/{user_id}", response_model=UserResponse)
async def get_me(user_id: str, db: Session = Depends(get_db)):
    """Get current user from database by Clerk user ID."""
    user = UserService.get_user_by_id(db, user_id)

    if not user:
        raise HTTPException(
            status_code=404,
            detail="User not found in database. Make sure webhook has been triggered."
        )

    return user
