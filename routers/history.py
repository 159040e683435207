from typing import Optional

from fastapi import APIRouter, Depends

from config import Config
from dependencies import get_settings, get_store
from services.history import recent_history

router = APIRouter(prefix="/api/history", tags=["History"])


@router.get("/{user_type}")
@router.get("/{user_type}/{user_code}")
def get_history(
    user_type: str,
    user_code: Optional[str] = None,
    store=Depends(get_store),
    config: Config = Depends(get_settings),
):
    """Last HISTORY_DAYS of the actor's trail. Faculty need a faculty code."""
    return recent_history(store.load(), user_type, user_code, days=config.HISTORY_DAYS)
