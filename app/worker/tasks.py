"""ARQ job definitions."""

import uuid
from typing import Any

from arq.connections import RedisSettings

from app.core.config import get_settings
from app.core.logging import get_logger
from app.services import donations as donations_service

log = get_logger(__name__)


async def _run_with_dlq(job_name: str, job_id: str | None, kwargs: dict[str, Any], coro) -> Any:
    """Run coroutine; on exception persist to FailedJob then re-raise."""
    try:
        return await coro
    except Exception as e:
        from app.models.failed_job import FailedJob
        fid = job_id or str(uuid.uuid4())
        await FailedJob(job_name=job_name, job_id=fid, kwargs=kwargs, reason=str(e)[:2000]).insert()
        log.exception("job_failed", job=job_name, job_id=fid, reason=str(e))
        raise


async def reconcile_donations(ctx: dict[str, Any]) -> int:
    """Insert donations still owed by winning spins."""
    job_id = ctx.get("job_id") if isinstance(ctx.get("job_id"), str) else None
    window = get_settings().donation_reconcile_window_hours

    async def _run() -> int:
        created = await donations_service.reconcile_pending(window_hours=window)
        log.info("job_done", job="reconcile_donations", created=created)
        return created

    return await _run_with_dlq("reconcile_donations", job_id, {"window_hours": window}, _run())


async def startup(ctx: dict) -> None:
    from app.db.init import init_db
    await init_db()


async def shutdown(ctx: dict) -> None:
    pass


def get_redis_settings() -> RedisSettings:
    from urllib.parse import urlparse
    s = get_settings()
    u = urlparse(s.redis_url)
    return RedisSettings(
        host=u.hostname or "localhost",
        port=u.port or 6379,
        password=u.password,
        database=int(u.path.lstrip("/")) if u.path.lstrip("/") else 0,
    )
