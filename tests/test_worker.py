import pytest

from app.models.donation import Donation
from app.models.failed_job import FailedJob
from app.models.spin import Spin
from app.services import donations as donations_service
from app.worker import tasks


async def test_reconcile_job_inserts_missing_donation(make_user, charity):
    user = await make_user(charity=charity)
    spin = Spin(
        user_id=user.id,
        bet_amount=1,
        result_grid=[["🔔"] * 5 for _ in range(5)],
        won=True,
        pot_amount_won=450,
        charity_id=charity.id,
    )
    await spin.insert()

    created = await tasks.reconcile_donations({"job_id": "job-1"})

    assert created == 1
    donation = await Donation.find_one(Donation.spin_id == spin.id)
    assert donation.amount_cents == 450
    assert donation.charity_id == charity.id


async def test_reconcile_ignores_old_spins(make_user, charity):
    from datetime import datetime, timedelta
    user = await make_user(charity=charity)
    await Spin(
        user_id=user.id,
        bet_amount=1,
        result_grid=[["🔔"] * 5 for _ in range(5)],
        won=True,
        pot_amount_won=10,
        charity_id=charity.id,
        timestamp=datetime.utcnow() - timedelta(days=3),
    ).insert()

    assert await donations_service.reconcile_pending(window_hours=24) == 0


async def test_failed_job_goes_to_dead_letter(db, monkeypatch):
    async def boom(*args, **kwargs):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(donations_service, "reconcile_pending", boom)
    with pytest.raises(RuntimeError):
        await tasks.reconcile_donations({"job_id": "job-2"})

    failed = await FailedJob.find_one(FailedJob.job_id == "job-2")
    assert failed.job_name == "reconcile_donations"
    assert "store unavailable" in failed.reason


def test_redis_settings_from_url(monkeypatch):
    from app.core.config import get_settings
    monkeypatch.setattr(get_settings(), "redis_url", "redis://:pw@cache:6380/2")
    rs = tasks.get_redis_settings()
    assert (rs.host, rs.port, rs.password, rs.database) == ("cache", 6380, "pw", 2)


def _won_spin(user, charity, **kwargs) -> Spin:
    return Spin(
        user_id=user.id,
        bet_amount=1,
        result_grid=[["🍋"] * 5 for _ in range(5)],
        won=True,
        pot_amount_won=kwargs.pop("pot_amount_won", 100),
        charity_id=charity.id,
        **kwargs,
    )


async def test_reconcile_finds_owed_spin_behind_many_settled_wins(make_user, charity):
    from datetime import datetime, timedelta
    user = await make_user(charity=charity)
    owed = _won_spin(user, charity, pot_amount_won=777, timestamp=datetime.utcnow() - timedelta(hours=1))
    await owed.insert()
    for _ in range(101):
        spin = _won_spin(user, charity)
        await spin.insert()
        await Donation(spin_id=spin.id, user_id=user.id, charity_id=charity.id, amount_cents=100).insert()

    assert await donations_service.reconcile_pending() == 1
    donation = await Donation.find_one(Donation.spin_id == owed.id)
    assert donation.amount_cents == 777


async def test_reconcile_pages_through_all_owed_spins(make_user, charity):
    user = await make_user(charity=charity)
    for _ in range(5):
        await _won_spin(user, charity).insert()

    assert await donations_service.reconcile_pending(batch_size=2) == 5
    assert await Donation.find_all().count() == 5
    assert await donations_service.reconcile_pending(batch_size=2) == 0


async def test_reconcile_without_window_catches_up_after_downtime(make_user, charity):
    from datetime import datetime, timedelta
    user = await make_user(charity=charity)
    await _won_spin(user, charity, timestamp=datetime.utcnow() - timedelta(days=3)).insert()

    assert await tasks.reconcile_donations({"job_id": "job-3"}) == 1
