from beanie import PydanticObjectId
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.deps import require_admin
from app.models.user import User
from app.services import charities as charities_service
from app.services import donations as donations_service

router = APIRouter()


class CharityCreate(BaseModel):
    name: str
    description: str | None = None
    logo_url: str | None = None
    approved: bool = False


@router.post("/charities")
async def admin_charity_create(body: CharityCreate, user: User = Depends(require_admin)):
    """Admin: add a charity to the catalog."""
    c = await charities_service.create_charity(body.name, body.description, body.logo_url, body.approved)
    return charities_service.charity_to_dict(c)


@router.post("/charities/{charity_id}/approve")
async def admin_charity_approve(charity_id: PydanticObjectId, user: User = Depends(require_admin)):
    c = await charities_service.set_approved(charity_id, True)
    return charities_service.charity_to_dict(c)


@router.post("/donations/reconcile")
async def admin_donations_reconcile(user: User = Depends(require_admin)):
    """Admin: insert donations missing for recent winning spins now instead of waiting for the worker."""
    created = await donations_service.reconcile_pending()
    return {"created": created}
