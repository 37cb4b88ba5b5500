from typing import Optional

from fastapi import APIRouter, Body, Depends, Query

from config.constants import ROLE_ADMIN, ROLE_CUSTOMER
from database import get_db
from models.user import Principal
from utils.profiles import delete_profile, get_profile, list_profiles, update_profile
from utils.security import require_role

router = APIRouter(prefix="/customers", tags=["Customers"])


# Customers only ever see and change their own record.

@router.get("")
async def list_customers(
    page: int = Query(1),
    limit: int = Query(10),
    name: Optional[str] = None,
    email: Optional[str] = None,
    phone_no: Optional[str] = None,
    user: Principal = Depends(require_role(ROLE_ADMIN, ROLE_CUSTOMER)),
    db=Depends(get_db),
):
    return await list_profiles(
        db, ROLE_CUSTOMER, user,
        page=page, limit=limit,
        filters={"name": name, "email": email, "phone_no": phone_no},
    )


@router.get("/{customer_id}")
async def get_customer(
    customer_id: str,
    user: Principal = Depends(require_role(ROLE_ADMIN, ROLE_CUSTOMER)),
    db=Depends(get_db),
):
    return await get_profile(db, ROLE_CUSTOMER, user, customer_id)


@router.put("/{customer_id}")
async def update_customer(
    customer_id: str,
    payload: dict = Body(...),
    user: Principal = Depends(require_role(ROLE_ADMIN, ROLE_CUSTOMER)),
    db=Depends(get_db),
):
    return await update_profile(db, ROLE_CUSTOMER, user, customer_id, payload)


@router.delete("/{customer_id}")
async def delete_customer(
    customer_id: str,
    admin: Principal = Depends(require_role(ROLE_ADMIN)),
    db=Depends(get_db),
):
    return await delete_profile(db, ROLE_CUSTOMER, admin, customer_id)
