"""Donations: one per winning spin with a charity; reconciliation of missing ones; recent winners feed."""

from datetime import datetime, timedelta

from beanie.operators import In
from pymongo.errors import DuplicateKeyError

from app.core.config import get_settings
from app.core.exceptions import PersistenceError
from app.core.logging import get_logger
from app.models.charity import Charity
from app.models.donation import Donation
from app.models.spin import Spin
from app.models.user import User

log = get_logger(__name__)


async def record_for_spin(spin: Spin) -> tuple[Donation | None, bool]:
    """
    Insert the donation owed by a winning spin. Idempotent per spin (unique spin_id).
    Returns (donation, created); created is True only when this call inserted it.
    Spins that owe nothing (lost, or no charity selected) give (None, False).
    Raises PersistenceError when the insert fails; the spin stays owed and is picked up by reconcile_pending.
    """
    if not spin.won or spin.charity_id is None:
        return None, False
    existing = await Donation.find_one(Donation.spin_id == spin.id)
    if existing:
        return existing, False
    donation = Donation(
        spin_id=spin.id,
        user_id=spin.user_id,
        charity_id=spin.charity_id,
        amount_cents=spin.pot_amount_won,
    )
    try:
        await donation.insert()
    except DuplicateKeyError:
        # concurrent reconcile or retry won the insert
        return await Donation.find_one(Donation.spin_id == spin.id), False
    except Exception as e:
        log.exception("donation_insert_failed", spin_id=str(spin.id), amount_cents=spin.pot_amount_won)
        raise PersistenceError(
            "Spin recorded but donation is pending",
            details={"spin_id": str(spin.id), "retryable": True},
        ) from e
    log.info(
        "donation_recorded",
        spin_id=str(spin.id),
        charity_id=str(spin.charity_id),
        amount_cents=donation.amount_cents,
    )
    return donation, True


async def _owed_spins(since: datetime | None, batch_size: int) -> list[Spin]:
    """Oldest winning spins with a charity and no donation yet."""
    filters = [Spin.won == True, Spin.charity_id != None]  # noqa: E711,E712
    if since is not None:
        filters.append(Spin.timestamp >= since)
    rows = await Spin.find(*filters).aggregate(
        [
            {
                "$lookup": {
                    "from": Donation.get_collection_name(),
                    "localField": "_id",
                    "foreignField": "spin_id",
                    "as": "donations",
                }
            },
            {"$match": {"donations": {"$size": 0}}},
            {"$sort": {"timestamp": 1}},
            {"$limit": batch_size},
            {"$project": {"_id": 1}},
        ]
    ).to_list()
    if not rows:
        return []
    return await Spin.find(In(Spin.id, [row["_id"] for row in rows])).sort(+Spin.timestamp).to_list()


async def reconcile_pending(window_hours: int | None = None, batch_size: int = 100) -> int:
    """
    Insert the donations still owed by winning spins. Returns how many this call created.

    Only spins without a donation are selected, oldest first, in batches of batch_size until none
    are left. window_hours (default: settings, None = no bound) limits the scan to recent spins.
    """
    if window_hours is None:
        window_hours = get_settings().donation_reconcile_window_hours
    since = datetime.utcnow() - timedelta(hours=window_hours) if window_hours else None
    created = 0
    scanned = 0
    while True:
        owed = await _owed_spins(since, batch_size)
        for spin in owed:
            _, inserted = await record_for_spin(spin)
            created += inserted
        scanned += len(owed)
        if len(owed) < batch_size:
            break
    if created:
        log.info("donations_reconciled", created=created, scanned=scanned)
    return created


def _first_name(email: str) -> str:
    name = (email or "").split("@")[0]
    return name[:1].upper() + name[1:] if name else "Someone"


async def recent_winners(limit: int = 5) -> list[dict]:
    """Newest donations with winner first name and charity name."""
    donations = await Donation.find_all().sort(-Donation.timestamp).limit(limit).to_list()
    out = []
    for d in donations:
        user = await User.get(d.user_id)
        charity = await Charity.get(d.charity_id)
        out.append(
            {
                "id": str(d.id),
                "winner": _first_name(user.email if user else ""),
                "charity": charity.name if charity else None,
                "amount_cents": d.amount_cents,
                "timestamp": d.timestamp.isoformat(),
            }
        )
    return out
