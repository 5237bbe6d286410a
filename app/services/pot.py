"""Global pot: singleton lookup, payout arithmetic and compare-and-swap writes."""

from datetime import datetime

from beanie import UpdateResponse
from pymongo.errors import DuplicateKeyError

from app.core.config import get_settings
from app.core.exceptions import PotUnavailableError
from app.core.logging import get_logger
from app.models.global_pot import POT_KEY, GlobalPot

log = get_logger(__name__)


def settle_pot(pot_cents: int, bet_credits: int, won: bool, cents_per_credit: int | None = None) -> tuple[int, int]:
    """Return (payout_cents, new_pot_cents). A win takes the whole pot; a loss adds the stake at the credit rate."""
    if cents_per_credit is None:
        cents_per_credit = get_settings().cents_per_credit
    if won:
        return pot_cents, 0
    return 0, pot_cents + bet_credits * cents_per_credit


async def ensure_pot() -> GlobalPot:
    """Create the singleton pot if it does not exist yet. Safe when several processes start at once."""
    pot = await GlobalPot.find_one(GlobalPot.key == POT_KEY)
    if pot:
        return pot
    pot = GlobalPot()
    try:
        await pot.insert()
    except DuplicateKeyError:
        # another process created it between our read and insert
        return await get_pot()
    log.info("pot_created", pot_id=str(pot.id))
    return pot


async def get_pot() -> GlobalPot:
    pot = await GlobalPot.find_one(GlobalPot.key == POT_KEY)
    if not pot:
        raise PotUnavailableError()
    return pot


async def compare_and_set(expected: GlobalPot, amount_cents: int) -> GlobalPot | None:
    """
    Write amount_cents only if the pot still carries expected.version.
    Returns the updated pot, or None when another spin got there first.
    """
    return await GlobalPot.find_one(
        GlobalPot.key == POT_KEY,
        GlobalPot.version == expected.version,
    ).update(
        {
            "$set": {
                "amount_cents": amount_cents,
                "version": expected.version + 1,
                "last_updated": datetime.utcnow(),
            }
        },
        response_type=UpdateResponse.NEW_DOCUMENT,
    )


def pot_to_dict(pot: GlobalPot) -> dict:
    return {"potAmount": pot.amount_cents, "lastUpdated": pot.last_updated.isoformat()}
