from typing import Optional

from fastapi import APIRouter, Body, Depends, Query

from config.constants import ROLE_ADMIN, ROLE_DELIVERER, ROLE_SELLER
from database import get_db
from models.user import Principal
from utils.profiles import delete_profile, get_profile, list_profiles, update_profile
from utils.security import require_role

router = APIRouter(prefix="/deliverers", tags=["Deliverers"])


@router.get("")
async def list_deliverers(
    page: int = Query(1),
    limit: int = Query(10),
    status: Optional[str] = None,
    name: Optional[str] = None,
    email: Optional[str] = None,
    phone_no: Optional[str] = None,
    user: Principal = Depends(require_role(ROLE_ADMIN, ROLE_SELLER, ROLE_DELIVERER)),
    db=Depends(get_db),
):
    return await list_profiles(
        db, ROLE_DELIVERER, user,
        page=page, limit=limit,
        filters={"status": status, "name": name, "email": email, "phone_no": phone_no},
    )


@router.get("/{deliverer_id}")
async def get_deliverer(
    deliverer_id: str,
    user: Principal = Depends(require_role(ROLE_ADMIN, ROLE_SELLER, ROLE_DELIVERER)),
    db=Depends(get_db),
):
    return await get_profile(db, ROLE_DELIVERER, user, deliverer_id)


@router.put("/{deliverer_id}")
async def update_deliverer(
    deliverer_id: str,
    payload: dict = Body(...),
    user: Principal = Depends(require_role(ROLE_ADMIN, ROLE_DELIVERER)),
    db=Depends(get_db),
):
    return await update_profile(db, ROLE_DELIVERER, user, deliverer_id, payload)


@router.delete("/{deliverer_id}")
async def delete_deliverer(
    deliverer_id: str,
    admin: Principal = Depends(require_role(ROLE_ADMIN)),
    db=Depends(get_db),
):
    return await delete_profile(db, ROLE_DELIVERER, admin, deliverer_id)
