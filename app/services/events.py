"""Pot change notifications on a Redis pub/sub channel."""

import orjson
import redis.asyncio as aioredis

from app.core.config import get_settings
from app.core.logging import get_logger

log = get_logger(__name__)


async def publish_pot_update(pot_total_cents: int, spin_id: str | None = None, won: bool = False) -> bool:
    """Publish the new pot total. Returns False if disabled or Redis is unreachable."""
    settings = get_settings()
    if not settings.pot_events_enabled:
        return False
    message = orjson.dumps({"type": "pot_updated", "pot_total_cents": pot_total_cents, "spin_id": spin_id, "won": won})
    redis = aioredis.from_url(settings.redis_url, decode_responses=True)
    try:
        await redis.publish(settings.pot_events_channel, message)
        return True
    except Exception as e:
        # Subscribers can always fall back to GET /v1/game/pot.
        log.warning("pot_event_publish_failed", error=str(e))
        return False
    finally:
        await redis.aclose()
