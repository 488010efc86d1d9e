"""Activity feed endpoint for API v1."""

from fastapi import APIRouter, Depends

from vehicle_docs_api.app.core.security import AuthenticatedUser, get_current_user
from vehicle_docs_api.app.schemas.history import HistoryList
from vehicle_docs_api.app.services.history_service import HistoryService

router = APIRouter()


@router.get("/history", response_model=HistoryList, response_model_exclude_none=True)
async def get_history(current_user: AuthenticatedUser = Depends(get_current_user)) -> dict:
    return {"history": await HistoryService.build_history(current_user.id)}
