from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from app.deps import get_current_user
from app.models.user import User
from app.services import credits as credits_service

router = APIRouter()


class PurchaseRequest(BaseModel):
    credits: int = Field(gt=0)


@router.get("/balance")
async def credits_balance(user: User = Depends(get_current_user)):
    """Return current credit balance."""
    balance = await credits_service.get_balance(user.id)
    return {"balance": balance}


@router.get("/packages")
async def credits_packages():
    return {"packages": credits_service.get_packages(), **credits_service.get_pricing()}


@router.post("/purchase")
async def credits_purchase(body: PurchaseRequest, user: User = Depends(get_current_user)):
    """Not live yet: always answers 501 PAYMENTS_UNAVAILABLE."""
    return await credits_service.purchase(user.id, body.credits)
