"""Charity catalog and per-user charity selection."""

from datetime import datetime

from beanie import PydanticObjectId

from app.core.exceptions import BadRequestError, NotFoundError
from app.core.logging import get_logger
from app.models.charity import Charity
from app.models.user import User

log = get_logger(__name__)


async def list_approved() -> list[Charity]:
    return await Charity.find(Charity.approved == True).sort(+Charity.name).to_list()  # noqa: E712


async def create_charity(
    name: str,
    description: str | None = None,
    logo_url: str | None = None,
    approved: bool = False,
) -> Charity:
    name = (name or "").strip()
    if not name:
        raise BadRequestError("Charity name required")
    charity = Charity(name=name, description=description, logo_url=logo_url, approved=approved)
    await charity.insert()
    log.info("charity_created", charity_id=str(charity.id), approved=approved)
    return charity


async def set_approved(charity_id: PydanticObjectId, approved: bool = True) -> Charity:
    charity = await Charity.get(charity_id)
    if not charity:
        raise NotFoundError("Charity not found")
    charity.approved = approved
    await charity.save()
    return charity


async def select_charity(user_id: PydanticObjectId, charity_id: PydanticObjectId) -> User:
    """Set the charity that receives this user's winnings. Can be changed at any time."""
    user = await User.get(user_id)
    if not user:
        raise NotFoundError("User not found")
    charity = await Charity.get(charity_id)
    if not charity or not charity.approved:
        raise NotFoundError("Charity not found")
    user.selected_charity_id = charity.id
    user.updated_at = datetime.utcnow()
    await user.save()
    from app.core.audit import log_event
    await log_event(str(user.id), "charity_selected", "charity", str(charity.id), {"name": charity.name})
    return user


def charity_to_dict(c: Charity) -> dict:
    return {
        "id": str(c.id),
        "name": c.name,
        "description": c.description,
        "logo_url": c.logo_url,
        "approved": c.approved,
    }
