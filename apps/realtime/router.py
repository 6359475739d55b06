import asyncio
import logging

from fastapi import APIRouter, HTTPException, Request, WebSocket, WebSocketDisconnect, status
from fastapi.encoders import jsonable_encoder

from apps.realtime.context import RealtimeContext
from apps.realtime.events import DeltaEvent

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])

# Per-connection buffer; a client this far behind is disconnected
MAX_QUEUED_EVENTS = 1000


def _context(app) -> RealtimeContext:
    return app.state.realtime


async def pump_events(websocket: WebSocket, queue: asyncio.Queue) -> None:
    """
    Send queued deltas until the overflow sentinel (None) arrives, then close
    the socket with 1013 (try again later).
    """
    while True:
        event = await queue.get()
        if event is None:
            await websocket.close(code=1013)
            return
        await websocket.send_json({"type": "delta", **event.to_message()})


@router.get("/api/realtime/snapshot")
async def snapshot(request: Request) -> dict:
    ctx = _context(request.app)
    if not ctx.started:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Realtime is not running.")
    return jsonable_encoder(ctx.store.snapshot())


@router.websocket("/ws/changes")
async def changes(websocket: WebSocket):
    """
    Streams DeltaEvents as JSON. The first message is the current snapshot;
    clients may send {"type": "ping"} to get {"type": "pong"}.
    """
    ctx = _context(websocket.app)
    await websocket.accept()
    if not ctx.started:
        await websocket.send_json({"type": "error", "message": "Realtime is not running"})
        await websocket.close(code=1013)
        return

    queue: asyncio.Queue = asyncio.Queue(maxsize=MAX_QUEUED_EVENTS)

    def enqueue(event: DeltaEvent) -> None:
        try:
            queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning("Realtime client too slow; dropping connection")
            unsubscribe()
            queue.get_nowait()
            queue.put_nowait(None)

    unsubscribe = ctx.reconciler.subscribe(enqueue)
    await websocket.send_json({"type": "snapshot", "data": jsonable_encoder(ctx.store.snapshot())})

    async def receive():
        while True:
            data = await websocket.receive_json()
            if isinstance(data, dict) and data.get("type") == "ping":
                await websocket.send_json({"type": "pong"})

    pump_task = asyncio.create_task(pump_events(websocket, queue))
    receive_task = asyncio.create_task(receive())
    try:
        done, pending = await asyncio.wait({pump_task, receive_task}, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.error("Realtime websocket error: %s", exc)
    finally:
        unsubscribe()
        logger.info("Realtime websocket closed")
