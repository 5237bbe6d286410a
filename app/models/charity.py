from datetime import datetime

from beanie import Document
from pydantic import Field


class Charity(Document):
    """Catalog entry; only approved charities can be selected."""
    name: str
    description: str | None = None
    logo_url: str | None = None
    approved: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "charities"
        indexes = [[("approved", 1), ("name", 1)]]
