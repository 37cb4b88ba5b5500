from fastapi import APIRouter, Depends, Query, status
from datetime import datetime

from config.constants import ROLE_ADMIN, ROLE_CUSTOMER, ROLE_SELLER
from database import get_db
from models.order import PaymentCreate, PaymentUpdate
from models.user import Principal
from utils.errors import Conflict, NotFound
from utils.guards import parse_object_id
from utils.mongo import list_envelope, paginate, serialize_doc, merge_filters
from utils.scoping import fetch_in_scope, scope_filter
from utils.security import require_role

router = APIRouter(prefix="/payments", tags=["Payments"])


# Payment records only: no gateway calls happen here.

@router.get("")
async def list_payments(
    page: int = Query(1),
    limit: int = Query(10),
    user: Principal = Depends(require_role(ROLE_ADMIN, ROLE_CUSTOMER, ROLE_SELLER)),
    db=Depends(get_db),
):
    scope = await scope_filter(db, "payment", user)
    docs, total, page, limit = await paginate(
        db.payments, merge_filters(scope), page=page, limit=limit
    )

    return list_envelope(
        "payments", [serialize_doc(p) for p in docs], total, page, limit,
        "Payments fetched successfully",
    )


@router.get("/{payment_id}")
async def get_payment(
    payment_id: str,
    user: Principal = Depends(require_role(ROLE_ADMIN, ROLE_CUSTOMER, ROLE_SELLER)),
    db=Depends(get_db),
):
    oid = parse_object_id(payment_id, "payment id")
    payment = await fetch_in_scope(db, db.payments, "payment", user, oid, verb="access")

    return {"success": True, "payment": serialize_doc(payment)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_payment(
    data: PaymentCreate,
    customer: Principal = Depends(require_role(ROLE_CUSTOMER)),
    db=Depends(get_db),
):
    order_oid = parse_object_id(data.order_id, "order id")
    await fetch_in_scope(db, db.orders, "order", customer, order_oid, verb="pay for")

    if await db.payments.find_one({"order_id": order_oid}, {"_id": 1}):
        raise Conflict("Payment already exists for this order")

    payment = {
        "customer_id": customer.id,
        "order_id": order_oid,
        "payment_method": data.payment_method,
        "created_at": datetime.utcnow(),
    }

    result = await db.payments.insert_one(payment)
    payment["_id"] = result.inserted_id

    return {
        "success": True,
        "message": "Payment created successfully",
        "payment": serialize_doc(payment),
    }


@router.put("/{payment_id}")
async def update_payment(
    payment_id: str,
    data: PaymentUpdate,
    user: Principal = Depends(require_role(ROLE_ADMIN, ROLE_CUSTOMER)),
    db=Depends(get_db),
):
    oid = parse_object_id(payment_id, "payment id")
    await fetch_in_scope(db, db.payments, "payment", user, oid, write=True, verb="update")

    await db.payments.update_one(
        {"_id": oid},
        {"$set": {"payment_method": data.payment_method, "updated_at": datetime.utcnow()}},
    )

    payment = await db.payments.find_one({"_id": oid})
    return {
        "success": True,
        "message": "Payment updated successfully",
        "payment": serialize_doc(payment),
    }


@router.delete("/{payment_id}")
async def delete_payment(
    payment_id: str,
    admin: Principal = Depends(require_role(ROLE_ADMIN)),
    db=Depends(get_db),
):
    result = await db.payments.delete_one({"_id": parse_object_id(payment_id, "payment id")})
    if result.deleted_count == 0:
        raise NotFound("Payment not found")

    return {"success": True, "message": "Payment deleted successfully"}
