import contextlib
from contextlib import asynccontextmanager
import asyncio
import logging

from app.achievements import BADGE_CATALOG
from app.analytics.db import init_db, purge_old_records
from app.api.deps import get_orchestrator, get_store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    store = get_store()
    store.init_schema()
    seeded = store.seed_badges(BADGE_CATALOG)
    if seeded:
        logger.info("badge_catalog_seeded inserted=%s", seeded)

    orchestrator = get_orchestrator()
    logger.info(
        "scoring_mode hybrid_mode=%s configured=%s",
        orchestrator.hybrid_mode,
        orchestrator.config_error is None,
    )

    init_db()
    purge_old_records()

    stop_event = asyncio.Event()

    async def periodic_purge() -> None:
        while not stop_event.is_set():
            try:
                deleted = await asyncio.to_thread(purge_old_records)
                if any(deleted.values()):
                    logger.info("analytics_retention_purge deleted=%s", deleted)
            except Exception as exc:  # pragma: no cover
                logger.warning("analytics_retention_purge_failed: %s", exc)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=3600)
            except asyncio.TimeoutError:
                continue

    purge_task = asyncio.create_task(periodic_purge())
    yield
    stop_event.set()
    if not purge_task.done():
        purge_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await purge_task
