import asyncio
import logging
from typing import Awaitable, Callable, Optional

import psycopg
from psycopg import sql

logger = logging.getLogger(__name__)

PayloadHandler = Callable[[str], Awaitable[None]]


class PgNotifyListener:
    """
    LISTENs on a PostgreSQL channel and hands every notification payload to
    ``handler``. A dropped connection is retried after ``reconnect_seconds``.
    """

    def __init__(self, dsn: str, channel: str, handler: PayloadHandler, reconnect_seconds: float = 5.0):
        self.dsn = dsn
        self.channel = channel
        self.handler = handler
        self.reconnect_seconds = reconnect_seconds
        self._task: Optional[asyncio.Task] = None
        self.connected = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name=f"pg-listen-{self.channel}")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        self.connected.clear()
        logger.info("Stopped listening on %s", self.channel)

    async def _run(self) -> None:
        while True:
            try:
                await self._listen()
            except psycopg.Error as exc:
                self.connected.clear()
                logger.warning("LISTEN %s lost (%s); retrying in %.1fs", self.channel, exc, self.reconnect_seconds)
            await asyncio.sleep(self.reconnect_seconds)

    async def _listen(self) -> None:
        async with await psycopg.AsyncConnection.connect(self.dsn, autocommit=True) as conn:
            await conn.execute(sql.SQL("LISTEN {}").format(sql.Identifier(self.channel)))
            self.connected.set()
            logger.info("Listening on %s", self.channel)
            async for notify in conn.notifies():
                await self.handler(notify.payload)
