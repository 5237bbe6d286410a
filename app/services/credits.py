"""Credit balance and purchase packages. Purchasing itself is not live yet."""

from beanie import PydanticObjectId

from app.core.config import get_settings
from app.core.exceptions import NotFoundError, PaymentsUnavailableError
from app.models.user import User

# (credits, price in cents)
PACKAGES = (
    (40, 1000),
    (80, 2000),
    (200, 5000),
    (400, 10000),
)


async def get_balance(user_id: PydanticObjectId) -> int:
    user = await User.get(user_id)
    if not user:
        raise NotFoundError("User not found")
    return user.credits


def get_packages() -> list[dict]:
    return [
        {
            "credits": credits,
            "price_cents": price,
            "label": f"{credits} Credits",
            "value": f"${price / 100:.2f}",
            "best_value": credits == PACKAGES[-1][0],
        }
        for credits, price in PACKAGES
    ]


def get_pricing() -> dict:
    s = get_settings()
    return {"cents_per_credit": s.cents_per_credit, "bet_sizes": s.bet_sizes}


async def purchase(user_id: PydanticObjectId, credits: int) -> dict:
    raise PaymentsUnavailableError()
