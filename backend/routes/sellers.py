from typing import Optional

from fastapi import APIRouter, Body, Depends, Query

from config.constants import ROLE_ADMIN, ROLE_SELLER
from database import get_db
from models.user import Principal
from utils.profiles import delete_profile, get_profile, list_profiles, update_profile
from utils.security import require_role

router = APIRouter(prefix="/sellers", tags=["Sellers"])


@router.get("")
async def list_sellers(
    page: int = Query(1),
    limit: int = Query(10),
    status: Optional[str] = None,
    name: Optional[str] = None,
    email: Optional[str] = None,
    shop_name: Optional[str] = None,
    user: Principal = Depends(require_role(ROLE_ADMIN, ROLE_SELLER)),
    db=Depends(get_db),
):
    return await list_profiles(
        db, ROLE_SELLER, user,
        page=page, limit=limit,
        filters={"status": status, "name": name, "email": email, "shop_name": shop_name},
    )


@router.get("/{seller_id}")
async def get_seller(
    seller_id: str,
    user: Principal = Depends(require_role(ROLE_ADMIN, ROLE_SELLER)),
    db=Depends(get_db),
):
    return await get_profile(db, ROLE_SELLER, user, seller_id)


@router.put("/{seller_id}")
async def update_seller(
    seller_id: str,
    payload: dict = Body(...),
    user: Principal = Depends(require_role(ROLE_ADMIN, ROLE_SELLER)),
    db=Depends(get_db),
):
    return await update_profile(db, ROLE_SELLER, user, seller_id, payload)


@router.delete("/{seller_id}")
async def delete_seller(
    seller_id: str,
    admin: Principal = Depends(require_role(ROLE_ADMIN)),
    db=Depends(get_db),
):
    return await delete_profile(db, ROLE_SELLER, admin, seller_id)
