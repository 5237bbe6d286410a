"""Spin ledger: debit the stake, settle the shared pot, record the spin and its donation."""

import random
from dataclasses import dataclass

from beanie import PydanticObjectId, UpdateResponse
from pymongo.errors import DuplicateKeyError

from app.core.config import get_settings
from app.core.exceptions import (
    BadRequestError,
    ConflictError,
    InsufficientFundsError,
    NotFoundError,
    PersistenceError,
)
from app.core.logging import get_logger
from app.models.global_pot import GlobalPot
from app.models.spin import Spin
from app.models.user import User
from app.services import donations as donations_service
from app.services import events as events_service
from app.services import grid as grid_service
from app.services import pot as pot_service

log = get_logger(__name__)


@dataclass
class SpinResult:
    spin: Spin
    new_credits: int
    new_pot_amount: int
    win: grid_service.WinResult
    replayed: bool = False


async def _debit(user_id: PydanticObjectId, amount: int) -> User:
    # Conditional on balance so two concurrent spins can never overdraw.
    updated = await User.find_one(User.id == user_id, User.credits >= amount).update(
        {"$inc": {"credits": -amount}},
        response_type=UpdateResponse.NEW_DOCUMENT,
    )
    if updated is None:
        raise InsufficientFundsError()
    return updated


async def _refund(user_id: PydanticObjectId, amount: int) -> None:
    try:
        await User.find_one(User.id == user_id).update({"$inc": {"credits": amount}})
    except Exception:
        log.exception("refund_failed", user_id=str(user_id), amount=amount)


async def _restore_pot(written: GlobalPot, previous_cents: int) -> None:
    try:
        restored = await pot_service.compare_and_set(written, previous_cents)
    except Exception:
        restored = None
    if restored is None:
        log.error("pot_restore_failed", expected_version=written.version, previous_cents=previous_cents)


async def _replay(spin: Spin, bet_amount: int) -> SpinResult:
    if spin.bet_amount != bet_amount:
        raise ConflictError(
            "Idempotency-Key was already used with a different bet",
            details={"spin_id": str(spin.id), "bet_amount": spin.bet_amount},
        )
    user = await User.get(spin.user_id)
    pot = await pot_service.get_pot()
    await donations_service.record_for_spin(spin)
    return SpinResult(
        spin=spin,
        new_credits=user.credits if user else 0,
        new_pot_amount=pot.amount_cents,
        win=grid_service.find_winning_lines(spin.result_grid) if spin.won else grid_service.WinResult(),
        replayed=True,
    )


async def play_spin(
    user_id: PydanticObjectId,
    bet_amount: int,
    idempotency_key: str | None = None,
    win_probability: float | None = None,
    rng: random.Random | None = None,
) -> SpinResult:
    """
    Execute one spin for user_id staking bet_amount credits.

    Pre-checks (user, pot, balance) mutate nothing. The debit is conditional on the balance and the
    pot write is a compare-and-swap on its version; losing that race refunds the stake and raises
    ConflictError so the caller can retry. A failed spin insert is compensated (refund + pot restore).
    A failed donation insert raises a retryable PersistenceError and is reconciled by the worker; the pot
    update is published before that. Reusing an Idempotency-Key replays the stored spin (409 if the bet differs).
    """
    if isinstance(bet_amount, bool) or not isinstance(bet_amount, int) or bet_amount <= 0:
        raise BadRequestError("Bet amount must be a positive integer")

    if idempotency_key:
        existing = await Spin.find_one(Spin.user_id == user_id, Spin.idempotency_key == idempotency_key)
        if existing:
            log.info("spin_replayed", spin_id=str(existing.id))
            return await _replay(existing, bet_amount)

    user = await User.get(user_id)
    if not user:
        raise NotFoundError("User not found")
    pot = await pot_service.get_pot()
    if user.credits < bet_amount:
        raise InsufficientFundsError(details={"credits": user.credits, "bet_amount": bet_amount})

    settings = get_settings()
    outcome = grid_service.generate_spin(rng=rng, win_probability=win_probability)
    payout, new_pot = pot_service.settle_pot(pot.amount_cents, bet_amount, outcome.won, settings.cents_per_credit)
    charity_id = user.selected_charity_id if outcome.won else None

    updated_user = await _debit(user.id, bet_amount)

    try:
        written = await pot_service.compare_and_set(pot, new_pot)
    except Exception as e:
        await _refund(user.id, bet_amount)
        log.exception("pot_update_failed", user_id=str(user.id))
        raise PersistenceError("Failed to update pot", details={"retryable": True}) from e
    if written is None:
        await _refund(user.id, bet_amount)
        log.warning("pot_conflict", user_id=str(user.id), expected_version=pot.version)
        raise ConflictError("Pot changed during spin, please retry", details={"retryable": True})

    spin = Spin(
        user_id=user.id,
        bet_amount=bet_amount,
        result_grid=outcome.grid,
        won=outcome.won,
        pot_amount_won=payout,
        charity_id=charity_id,
        idempotency_key=idempotency_key,
    )
    try:
        await spin.insert()
    except DuplicateKeyError as e:
        # a concurrent request with the same Idempotency-Key recorded its spin first
        await _refund(user.id, bet_amount)
        await _restore_pot(written, pot.amount_cents)
        existing = None
        if idempotency_key:
            existing = await Spin.find_one(Spin.user_id == user.id, Spin.idempotency_key == idempotency_key)
        if existing is None:
            log.exception("spin_insert_failed", user_id=str(user.id))
            raise PersistenceError("Failed to record spin", details={"retryable": True}) from e
        log.info("spin_replayed", spin_id=str(existing.id), concurrent=True)
        return await _replay(existing, bet_amount)
    except Exception as e:
        await _refund(user.id, bet_amount)
        await _restore_pot(written, pot.amount_cents)
        log.exception("spin_insert_failed", user_id=str(user.id))
        raise PersistenceError("Failed to record spin", details={"retryable": True}) from e

    log.info(
        "spin_played",
        spin_id=str(spin.id),
        user_id=str(user.id),
        bet_amount=bet_amount,
        won=outcome.won,
        pot_before=pot.amount_cents,
        pot_after=new_pot,
    )
    await events_service.publish_pot_update(new_pot, spin_id=str(spin.id), won=outcome.won)

    if outcome.won:
        from app.core.audit import log_event
        await log_event(
            str(user.id),
            "spin_won",
            "spin",
            str(spin.id),
            {"pot_amount_won": payout, "charity_id": str(charity_id) if charity_id else None},
        )
        await donations_service.record_for_spin(spin)

    win = grid_service.find_winning_lines(spin.result_grid) if outcome.won else grid_service.WinResult()
    return SpinResult(spin=spin, new_credits=updated_user.credits, new_pot_amount=new_pot, win=win)


async def list_spins(user_id: PydanticObjectId, limit: int = 20, offset: int = 0) -> list[Spin]:
    return (
        await Spin.find(Spin.user_id == user_id)
        .sort(-Spin.timestamp)
        .skip(offset)
        .limit(limit)
        .to_list()
    )


def spin_to_dict(spin: Spin) -> dict:
    return {
        "id": str(spin.id),
        "user_id": str(spin.user_id),
        "bet_amount": spin.bet_amount,
        "result_grid": spin.result_grid,
        "won": spin.won,
        "pot_amount_won": spin.pot_amount_won,
        "charity_id": str(spin.charity_id) if spin.charity_id else None,
        "timestamp": spin.timestamp.isoformat(),
    }


def result_to_dict(result: SpinResult) -> dict:
    return {
        "spin": spin_to_dict(result.spin),
        "newCredits": result.new_credits,
        "newPotAmount": result.new_pot_amount,
        "winningCells": [list(cell) for cell in result.win.cells],
        "winDescription": result.win.description,
    }
