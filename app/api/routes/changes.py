"""Change feed streaming route."""

import json
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from app.api.deps import get_current_company, get_current_settings
from app.core.config import Settings
from app.services.change_feed_service import ChangeFeedService
from src.database.models import Company

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/stream")
async def stream_changes(
    company: Company = Depends(get_current_company),
    settings: Settings = Depends(get_current_settings)
):
    """
    Stream change notifications for the current company.

    Uses HTTP chunked transfer with NDJSON format. Each line is one JSON
    object:
    - change: a row in messages, thread_contact_sharing or resources
      changed; re-fetch the affected view
    - keepalive: sent when nothing happened for a while
    """
    company_id = company.id

    async def change_generator():
        logger.info(f"[STREAM] Client connecting for company {company_id}")
        subscription = ChangeFeedService.subscribe(company_id)
        try:
            yield json.dumps({"type": "subscribed", "company_id": company_id}) + "\n"
            while True:
                event = await subscription.get(timeout=settings.stream_keepalive_seconds)
                if event is None:
                    yield json.dumps({"type": "keepalive"}) + "\n"
                    continue
                yield json.dumps(event) + "\n"
        finally:
            subscription.close()
            logger.info(f"[STREAM] Client disconnected for company {company_id}")

    return StreamingResponse(
        change_generator(),
        media_type="application/x-ndjson",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        }
    )
