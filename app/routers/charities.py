from beanie import PydanticObjectId
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.deps import get_current_user
from app.models.user import User
from app.services import charities as charities_service

router = APIRouter()


class CharitySelection(BaseModel):
    charity_id: PydanticObjectId


@router.get("")
async def charities_list():
    """Approved charities, ordered by name."""
    items = await charities_service.list_approved()
    return {"charities": [charities_service.charity_to_dict(c) for c in items]}


@router.put("/selection")
async def charity_select(body: CharitySelection, user: User = Depends(get_current_user)):
    """Choose (or change) the charity that receives this user's winnings."""
    user = await charities_service.select_charity(user.id, body.charity_id)
    return {"selected_charity_id": str(user.selected_charity_id)}
