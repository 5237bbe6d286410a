import orjson

from app.core.config import get_settings
from app.services import events as events_service


class FakeRedis:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.published = []
        self.closed = False

    async def publish(self, channel, message):
        if self.fail:
            raise ConnectionError("redis down")
        self.published.append((channel, message))

    async def aclose(self):
        self.closed = True


async def test_disabled_publishes_nothing():
    assert await events_service.publish_pot_update(100) is False


async def test_publishes_pot_update(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(get_settings(), "pot_events_enabled", True)
    monkeypatch.setattr(events_service.aioredis, "from_url", lambda *a, **k: fake)

    assert await events_service.publish_pot_update(725, spin_id="abc", won=False) is True

    channel, message = fake.published[0]
    assert channel == "pot_updates"
    assert orjson.loads(message) == {"type": "pot_updated", "pot_total_cents": 725, "spin_id": "abc", "won": False}
    assert fake.closed


async def test_publish_failure_does_not_raise(monkeypatch):
    fake = FakeRedis(fail=True)
    monkeypatch.setattr(get_settings(), "pot_events_enabled", True)
    monkeypatch.setattr(events_service.aioredis, "from_url", lambda *a, **k: fake)

    assert await events_service.publish_pot_update(0, won=True) is False
    assert fake.closed
