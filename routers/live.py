# routers/live.py

"""
Server-sent event feeds for the gated views.

Each connection owns its own AppContext: the view subscription and the
role watch both belong to it and are cancelled when the client goes away.
"""

import asyncio
import json
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse
from fastapi.security import HTTPAuthorizationCredentials
from starlette.concurrency import run_in_threadpool

from core.logging_config import logger
from core.session import SessionResolver
from core.site_config import ConfigStore
from dependencies.auth import (
    authenticate,
    bearer_scheme,
    build_context,
    get_config_store,
    get_device_id,
)
from services.gated_views import (
    AppDirectoryView,
    MarketFeedView,
    MarketRecordsView,
    UserAppsView,
    UsersView,
    WorkLogLedgerView,
)


HEARTBEAT_SECONDS = 20.0

FEEDS = {
    "apps": AppDirectoryView,
    "work-logs": WorkLogLedgerView,
    "market-entries": MarketFeedView,
    "users": UsersView,
    "gallery": UserAppsView,
    "market": MarketRecordsView,
}

router = APIRouter(
    prefix="/live",
    tags=["Live"],
)


def sse(event: str, data) -> str:
    return f"event: {event}\ndata: {json.dumps(data, default=str)}\n\n"


@router.get("/{feed}", summary="Follow a gated view as server-sent events")
async def follow_feed(
    feed: str,
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    device_id: str = Depends(get_device_id),
    config: ConfigStore = Depends(get_config_store),
):
    view_cls = FEEDS.get(feed)
    if view_cls is None:
        raise HTTPException(404, f"Unknown feed: {feed}")
    if credentials is None:
        raise HTTPException(401, "Sign in required", headers={"WWW-Authenticate": "Bearer"})

    identity = await run_in_threadpool(authenticate, credentials.credentials)
    ctx = await run_in_threadpool(build_context, identity, config, device_id)

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def push(kind: str, payload):
        loop.call_soon_threadsafe(queue.put_nowait, (kind, payload))

    view = view_cls(ctx)

    def on_role(new_role):
        ctx.role = new_role
        push("role", new_role)

    async def event_stream():
        role = ctx.role
        try:
            await run_in_threadpool(view.open)
            # The opening snapshot is sent below; only later changes are queued
            view.on_change(lambda v: push("snapshot", v.render()))
            resolver = SessionResolver(ctx.client)
            ctx.track(await run_in_threadpool(resolver.watch, ctx.identity, on_role))
            last = view.render()
            yield sse("snapshot", last)

            while True:
                if await request.is_disconnected():
                    break
                try:
                    kind, payload = await asyncio.wait_for(queue.get(), timeout=HEARTBEAT_SECONDS)
                except asyncio.TimeoutError:
                    yield sse("heartbeat", "keep-alive")
                    continue

                if kind == "snapshot" and payload != last:
                    last = payload
                    yield sse("snapshot", payload)

                # Role edits re-run the capability check against the new role
                if ctx.role != role:
                    role = ctx.role
                    yield sse("role", role.value if role else None)
                    await run_in_threadpool(view.retry)
                    current = view.render()
                    if current != last:
                        last = current
                        yield sse("snapshot", current)
        except Exception as e:
            logger.error(f"Live feed '{feed}' failed: {e}", exc_info=True)
            yield sse("error", "Live feed interrupted")
        finally:
            ctx.teardown()

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
