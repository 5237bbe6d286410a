from datetime import datetime

from beanie import Document, PydanticObjectId
from pydantic import Field
from pymongo import ASCENDING, DESCENDING, IndexModel


class Donation(Document):
    """Append-only record of a pot directed to a charity; at most one per winning spin."""
    spin_id: PydanticObjectId
    user_id: PydanticObjectId
    charity_id: PydanticObjectId
    amount_cents: int = Field(ge=0)
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "donations"
        indexes = [
            IndexModel([("spin_id", ASCENDING)], unique=True),
            IndexModel([("timestamp", DESCENDING)]),
            IndexModel([("charity_id", ASCENDING)]),
        ]
