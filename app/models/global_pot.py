from datetime import datetime

from beanie import Document, Indexed
from pydantic import Field

POT_KEY = "global"


class GlobalPot(Document):
    """Singleton shared pot. `version` is bumped on every write and used for compare-and-swap."""
    key: Indexed(str, unique=True) = POT_KEY
    amount_cents: int = Field(default=0, ge=0)
    version: int = 0
    last_updated: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "global_pot"
