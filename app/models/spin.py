from datetime import datetime

from beanie import Document, PydanticObjectId
from pydantic import Field
from pymongo import IndexModel


class Spin(Document):
    """One play. Inserted once, never updated."""
    user_id: PydanticObjectId
    bet_amount: int = Field(gt=0)  # credits
    result_grid: list[list[str]]
    won: bool = False
    pot_amount_won: int = 0  # cents
    charity_id: PydanticObjectId | None = None  # set only on a win
    idempotency_key: str | None = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "spins"
        indexes = [
            [("user_id", 1), ("timestamp", -1)],
            # one spin per (user, Idempotency-Key); keyless spins are not indexed
            IndexModel(
                [("user_id", 1), ("idempotency_key", 1)],
                unique=True,
                partialFilterExpression={"idempotency_key": {"$type": "string"}},
            ),
            [("won", 1), ("timestamp", -1)],
        ]
