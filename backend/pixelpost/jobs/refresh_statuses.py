from __future__ import annotations
import asyncio
import structlog
from pixelpost.db import SessionLocal
from pixelpost.events import build_broker
from pixelpost.services.contests import ContestService, StatusChange

log = structlog.get_logger()

async def _run() -> list[StatusChange]:
    broker = build_broker()
    try:
        async with SessionLocal() as session:
            changes = await ContestService(session, broker).refresh_statuses()
    finally:
        await broker.close()
    log.info("job.refresh_statuses", changed=len(changes))
    return changes

def refresh_statuses() -> list[dict]:
    # cron entry point (sync); run the async coroutine
    changes = asyncio.run(_run())
    return [
        {"id": str(c.contest_id), "title": c.title, "previousStatus": c.previous_status, "newStatus": c.new_status}
        for c in changes
    ]

if __name__ == "__main__":
    from pixelpost.logging_setup import configure_logging
    configure_logging()
    refresh_statuses()
