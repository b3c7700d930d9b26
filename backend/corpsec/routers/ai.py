"""AI model registry router."""
from fastapi import APIRouter, Depends

from corpsec.models.user import User
from corpsec.routers.auth import get_current_user
from corpsec.services.ai import get_best_available_model, get_default_model, list_models

router = APIRouter(prefix="/ai", tags=["ai"])


@router.get("/models")
async def get_models(current_user: User = Depends(get_current_user)):
    """Registered models with provider availability."""
    return {
        "models": list_models(),
        "default_model": get_default_model(),
        "best_available_model": get_best_available_model(),
    }
