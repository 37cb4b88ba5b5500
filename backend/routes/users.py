from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, status

from config.constants import ROLE_ADMIN
from database import get_db
from models.user import AdminCreate, Principal
from utils.accounts import create_account
from utils.audit import log_audit
from utils.mongo import serialize_account
from utils.profiles import delete_profile, get_profile, list_profiles, update_profile
from utils.security import require_role

router = APIRouter(prefix="/users", tags=["Admin Users"])


@router.get("")
async def list_users(
    page: int = Query(1),
    limit: int = Query(10),
    name: Optional[str] = None,
    email: Optional[str] = None,
    admin: Principal = Depends(require_role(ROLE_ADMIN)),
    db=Depends(get_db),
):
    return await list_profiles(
        db, ROLE_ADMIN, admin,
        page=page, limit=limit,
        filters={"name": name, "email": email},
    )


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    admin: Principal = Depends(require_role(ROLE_ADMIN)),
    db=Depends(get_db),
):
    return await get_profile(db, ROLE_ADMIN, admin, user_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    data: AdminCreate,
    admin: Principal = Depends(require_role(ROLE_ADMIN)),
    db=Depends(get_db),
):
    user = await create_account(db, ROLE_ADMIN, data.model_dump())

    await log_audit(
        db,
        actor_id=str(admin.id),
        actor_role=admin.role,
        action="ADMIN_CREATED",
        metadata={"user_id": str(user["_id"])},
    )

    return {
        "success": True,
        "message": "Admin user created successfully",
        "user": serialize_account(user, ROLE_ADMIN),
    }


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    payload: dict = Body(...),
    admin: Principal = Depends(require_role(ROLE_ADMIN)),
    db=Depends(get_db),
):
    return await update_profile(db, ROLE_ADMIN, admin, user_id, payload)


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    admin: Principal = Depends(require_role(ROLE_ADMIN)),
    db=Depends(get_db),
):
    return await delete_profile(db, ROLE_ADMIN, admin, user_id)
