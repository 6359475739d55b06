import logging
from typing import Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from apps.bids.assembler import BidQueryAssembler
from apps.realtime.collections import CollectionStore
from apps.realtime.fetcher import DatabaseFetcher
from apps.realtime.listener import PgNotifyListener
from apps.realtime.reconciler import RealtimeReconciler
from settings.config import Settings

logger = logging.getLogger(__name__)


class RealtimeContext:
    """
    Everything realtime for one application: the collections, the
    reconciler writing into them and the database listener feeding it.
    Built by the app factory, started on startup and stopped on shutdown.
    """

    def __init__(
        self,
        settings: Settings,
        session_factory: async_sessionmaker,
        assembler: BidQueryAssembler,
        listener: Optional[PgNotifyListener] = None,
    ):
        self.settings = settings
        self.store = CollectionStore()
        self.fetcher = DatabaseFetcher(session_factory, assembler)
        self.reconciler = RealtimeReconciler(
            strategy=settings.REALTIME_STRATEGY,
            debounce_seconds=settings.REALTIME_DEBOUNCE_SECONDS,
            fetcher=self.fetcher,
        )
        self.reconciler.set_state_updaters(**self.store.updaters().as_dict())
        self.listener = listener
        self.started = False

    def _build_listener(self) -> Optional[PgNotifyListener]:
        dsn = self.settings.build_listener_dsn()
        if not dsn.startswith("postgres"):
            logger.warning("Realtime needs PostgreSQL LISTEN/NOTIFY; %s is not supported", dsn.split(":", 1)[0])
            return None
        return PgNotifyListener(
            dsn,
            self.settings.REALTIME_CHANNEL,
            self.reconciler.handle_payload,
            reconnect_seconds=self.settings.REALTIME_RECONNECT_SECONDS,
        )

    async def start(self) -> None:
        if self.started:
            return
        self.store.load(await self.fetcher.fetch_all())
        if self.listener is None:
            self.listener = self._build_listener()
        if self.listener is not None:
            self.listener.start()
        self.started = True
        logger.info("Realtime started (%s strategy)", self.reconciler.strategy)

    async def stop(self) -> None:
        if self.listener is not None:
            await self.listener.stop()
        self.reconciler.close()
        self.started = False
        logger.info("Realtime stopped")
