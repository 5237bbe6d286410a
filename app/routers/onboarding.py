from fastapi import APIRouter, Depends

from app.deps import get_current_user
from app.models.user import User
from app.workflows.onboarding_agent import run_onboarding

router = APIRouter()


@router.get("/status")
async def onboarding_status(user: User = Depends(get_current_user)):
    """Return onboarding state (next_step, has_charity, credits)."""
    return await run_onboarding(str(user.id))
