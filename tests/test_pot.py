"""Pot arithmetic and singleton writes."""

import pytest

from app.core.exceptions import PotUnavailableError
from app.models.global_pot import GlobalPot
from app.services import pot as pot_service
from app.services.pot import settle_pot


@pytest.mark.parametrize(
    "pot, bet, expected",
    [
        (0, 1, (0, 25)),
        (500, 5, (0, 625)),
        (1234, 3, (0, 1309)),
    ],
)
def test_losing_spin_adds_stake_at_rate(pot, bet, expected):
    assert settle_pot(pot, bet, won=False, cents_per_credit=25) == expected


def test_winning_spin_takes_whole_pot():
    assert settle_pot(800, 5, won=True, cents_per_credit=25) == (800, 0)
    assert settle_pot(0, 1, won=True, cents_per_credit=25) == (0, 0)


def test_rate_defaults_to_settings():
    assert settle_pot(100, 2, won=False) == (0, 150)


async def test_ensure_pot_is_singleton(db):
    first = await pot_service.ensure_pot()
    second = await pot_service.ensure_pot()
    assert first.id == second.id
    assert await GlobalPot.find_all().count() == 1


async def test_get_pot_missing_raises(db):
    await GlobalPot.find_all().delete()
    with pytest.raises(PotUnavailableError):
        await pot_service.get_pot()


async def test_compare_and_set_bumps_version(db):
    pot = await pot_service.get_pot()
    written = await pot_service.compare_and_set(pot, 250)
    assert written is not None
    assert written.amount_cents == 250
    assert written.version == pot.version + 1


async def test_compare_and_set_rejects_stale_version(db):
    stale = await pot_service.get_pot()
    assert await pot_service.compare_and_set(stale, 100) is not None
    # second writer still holds the old version
    assert await pot_service.compare_and_set(stale, 999) is None
    current = await pot_service.get_pot()
    assert current.amount_cents == 100


async def test_ensure_pot_tolerates_concurrent_creation(db, stale_read):
    created_elsewhere = await pot_service.get_pot()
    stale_read(GlobalPot)

    pot = await pot_service.ensure_pot()

    assert pot.id == created_elsewhere.id
    assert await GlobalPot.find_all().count() == 1
