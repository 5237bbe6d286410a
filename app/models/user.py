from datetime import datetime

from beanie import Document, Indexed, PydanticObjectId
from pydantic import Field


class User(Document):
    google_sub: Indexed(str, unique=True)
    email: str
    name: str = ""
    picture: str | None = None
    role: str = "user"  # "user" | "admin"
    credits: int = Field(default=0, ge=0)
    selected_charity_id: PydanticObjectId | None = None  # null until onboarding picks one
    session_version: int = 0
    last_login_at: datetime | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "users"
