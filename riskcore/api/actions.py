"""Action gate consulted by rate-limited product actions."""
from fastapi import APIRouter, Query

from riskcore.models.risk import ActionType
from riskcore import service

router = APIRouter()


@router.get("/{user_id}/{action}")
def check_action(user_id: str, action: ActionType, used_today: int = Query(default=0, ge=0)):
    return service.is_action_allowed(user_id, action, used_today=used_today).model_dump()
