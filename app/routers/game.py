from fastapi import APIRouter, Depends, Header, Query
from pydantic import BaseModel, ConfigDict, Field

from app.core.config import get_settings
from app.core.pagination import page, paginate
from app.core.security import normalize_idempotency_key
from app.deps import get_current_user
from app.models.user import User
from app.services import grid as grid_service
from app.services import pot as pot_service
from app.services import spins as spins_service

router = APIRouter()


class SpinRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    bet_amount: int = Field(alias="betAmount", gt=0, strict=True)


@router.post("/spin")
async def game_spin(
    body: SpinRequest,
    user: User = Depends(get_current_user),
    idempotency_key: str | None = Header(None, alias="Idempotency-Key"),
):
    """Spend bet_amount credits on one spin. The player is always the session user."""
    result = await spins_service.play_spin(
        user.id,
        body.bet_amount,
        idempotency_key=normalize_idempotency_key(idempotency_key),
    )
    return spins_service.result_to_dict(result)


@router.get("/pot")
async def game_pot():
    pot = await pot_service.get_pot()
    return pot_service.pot_to_dict(pot)


@router.get("/spins")
async def game_spins(
    user: User = Depends(get_current_user),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    """Own spin history, newest first."""
    limit, offset = paginate(limit, offset)
    items = await spins_service.list_spins(user.id, limit=limit, offset=offset)
    return page([spins_service.spin_to_dict(s) for s in items], limit, offset)


@router.get("/config")
async def game_config():
    s = get_settings()
    return {
        "symbols": list(grid_service.SYMBOLS),
        "wild": grid_service.WILD,
        "grid_size": grid_service.GRID_SIZE,
        "bet_sizes": s.bet_sizes,
        "cents_per_credit": s.cents_per_credit,
    }
