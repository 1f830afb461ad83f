"""Server-sent change events, one per committed row change."""

import asyncio
import json
import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from jobos.services.change_feed import ChangeFeed, change_feed

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/events", tags=["events"])

KEEPALIVE_SECONDS = 15.0


async def event_stream(
    feed: ChangeFeed,
    request: Request | None = None,
    keepalive: float = KEEPALIVE_SECONDS,
) -> AsyncIterator[str]:
    """Format feed events as SSE ``data:`` lines, with comment keepalives."""
    async with feed.subscribe() as queue:
        while True:
            if request is not None and await request.is_disconnected():
                logger.debug("Change event client disconnected")
                return
            try:
                change = await asyncio.wait_for(queue.get(), timeout=keepalive)
            except asyncio.TimeoutError:
                yield ": keepalive\n\n"
                continue
            yield f"event: change\ndata: {json.dumps(change.to_dict())}\n\n"


@router.get("", summary="Stream change events")
async def stream_changes(request: Request) -> StreamingResponse:
    """Subscribe to ``{table, action, id}`` events for committed writes."""
    return StreamingResponse(
        event_stream(change_feed, request),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )
