from fastapi import APIRouter, Depends

from config import EDIT_CREDIT_COST
from shared_dependencies import User, get_current_user

router = APIRouter()


@router.get("/api/user/profile")
async def get_user_profile(current_user: User = Depends(get_current_user)):
    return {
        "success": True,
        "user": {
            "id": current_user.id,
            "email": current_user.email,
            "credits": current_user.credits,
            "demo": current_user.is_demo
        }
    }


@router.get("/api/user/credits")
async def get_user_credits(current_user: User = Depends(get_current_user)):
    """Get user's current credit balance"""
    return {
        "success": True,
        "credits": current_user.credits,
        "edit_cost": EDIT_CREDIT_COST,
        "can_edit": current_user.credits >= EDIT_CREDIT_COST,
        "email": current_user.email
    }
