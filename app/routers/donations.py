from fastapi import APIRouter, Query

from app.services import donations as donations_service

router = APIRouter()


@router.get("/recent")
async def donations_recent(limit: int = Query(5, ge=1, le=50)):
    """Latest winners and where their pot went."""
    return {"winners": await donations_service.recent_winners(limit)}
