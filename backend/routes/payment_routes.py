from fastapi import APIRouter

from config import CREDIT_PACKAGES

router = APIRouter()


@router.get("/api/payments/packages")
async def get_credit_packages():
    """Credit packages listed on the pricing page; checkout is not wired yet"""
    return {
        "success": True,
        "checkout_available": False,
        "packages": CREDIT_PACKAGES,
        "total_packages": len(CREDIT_PACKAGES)
    }
