from fastapi import APIRouter, Body, Depends, Query, status
from datetime import datetime
from typing import Optional

from config.constants import ROLE_ADMIN, ROLE_CUSTOMER, ROLE_DELIVERER, ROLE_SELLER
from database import get_db
from models.order import DelivererDeliveryUpdate, DeliveryAdminUpdate, DeliveryCreate
from models.user import Principal
from utils.errors import Forbidden, NotFound, ValidationFailed
from utils.guards import parse_object_id
from utils.mongo import list_envelope, merge_filters, paginate, serialize_doc
from utils.scoping import fetch_in_scope, parse_patch, scope_filter
from utils.security import require_role

router = APIRouter(prefix="/deliveries", tags=["Deliveries"])

# role -> what it may write on an existing delivery
DELIVERY_PATCHES = {
    ROLE_ADMIN: DeliveryAdminUpdate,
    ROLE_DELIVERER: DelivererDeliveryUpdate,
}


async def _existing_order(db, order_id: str) -> dict:
    order = await db.orders.find_one({"_id": parse_object_id(order_id, "order id")})
    if not order:
        raise NotFound("Order not found")
    return order


async def _existing_deliverer(db, deliverer_id: str) -> dict:
    deliverer = await db.deliverers.find_one(
        {"_id": parse_object_id(deliverer_id, "deliverer id")}, {"_id": 1}
    )
    if not deliverer:
        raise NotFound("Deliverer not found")
    return deliverer


# =========================
# LIST / DETAIL (SCOPED)
# =========================

@router.get("")
async def list_deliveries(
    page: int = Query(1),
    limit: int = Query(10),
    delivery_status: Optional[str] = Query(None, alias="status"),
    deliverer_id: Optional[str] = None,
    order_id: Optional[str] = None,
    user: Principal = Depends(
        require_role(ROLE_ADMIN, ROLE_CUSTOMER, ROLE_SELLER, ROLE_DELIVERER)
    ),
    db=Depends(get_db),
):
    scope = await scope_filter(db, "delivery", user)

    query = {}
    if delivery_status:
        query["status"] = delivery_status
    if deliverer_id:
        query["deliverer_id"] = parse_object_id(deliverer_id, "deliverer id")
    if order_id:
        query["order_id"] = parse_object_id(order_id, "order id")

    docs, total, page, limit = await paginate(
        db.deliveries, merge_filters(scope, query), page=page, limit=limit
    )

    return list_envelope(
        "deliveries", [serialize_doc(d) for d in docs], total, page, limit,
        "Deliveries fetched successfully",
    )


@router.get("/{delivery_id}")
async def get_delivery(
    delivery_id: str,
    user: Principal = Depends(
        require_role(ROLE_ADMIN, ROLE_CUSTOMER, ROLE_SELLER, ROLE_DELIVERER)
    ),
    db=Depends(get_db),
):
    oid = parse_object_id(delivery_id, "delivery id")
    delivery = await fetch_in_scope(db, db.deliveries, "delivery", user, oid, verb="access")

    return {"success": True, "delivery": serialize_doc(delivery)}


# =========================
# CREATE (SELLER / DELIVERER)
# =========================

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_delivery(
    data: DeliveryCreate,
    user: Principal = Depends(require_role(ROLE_ADMIN, ROLE_SELLER, ROLE_DELIVERER)),
    db=Depends(get_db),
):
    order = await _existing_order(db, data.order_id)

    # sellers ship only orders for their own products
    if user.role == ROLE_SELLER:
        await fetch_in_scope(db, db.orders, "order", user, order["_id"], verb="ship")

    deliverer_oid = None
    if data.deliverer_id:
        deliverer_oid = (await _existing_deliverer(db, data.deliverer_id))["_id"]

    if user.role == ROLE_DELIVERER:
        if deliverer_oid is not None and deliverer_oid != user.id:
            raise Forbidden("Deliverers can only assign deliveries to themselves")
        deliverer_oid = user.id

    delivery = {
        "address": data.address,
        "order_id": order["_id"],
        "deliverer_id": deliverer_oid,
        "status": data.status,
        "delivered_date": datetime.utcnow() if data.status == "delivered" else None,
        "created_at": datetime.utcnow(),
    }

    result = await db.deliveries.insert_one(delivery)
    delivery["_id"] = result.inserted_id

    return {
        "success": True,
        "message": "Delivery created successfully",
        "delivery": serialize_doc(delivery),
    }


# =========================
# UPDATE (ASSIGNED DELIVERER / ADMIN)
# =========================

@router.put("/{delivery_id}")
async def update_delivery(
    delivery_id: str,
    payload: dict = Body(...),
    user: Principal = Depends(require_role(ROLE_ADMIN, ROLE_DELIVERER)),
    db=Depends(get_db),
):
    oid = parse_object_id(delivery_id, "delivery id")
    delivery = await fetch_in_scope(
        db, db.deliveries, "delivery", user, oid, write=True, verb="update"
    )

    changes = parse_patch(payload, DELIVERY_PATCHES[user.role], user.role)
    if "status" in changes and changes["status"] is None:
        raise ValidationFailed("status: Delivery status cannot be null")

    if "order_id" in changes:
        changes["order_id"] = (await _existing_order(db, changes["order_id"]))["_id"]

    if changes.get("deliverer_id"):
        changes["deliverer_id"] = (await _existing_deliverer(db, changes["deliverer_id"]))["_id"]

    # entering "delivered" is always stamped by the server; a client date is ignored
    if changes.get("status") == "delivered" and delivery.get("status") != "delivered":
        changes["delivered_date"] = datetime.utcnow()

    await db.deliveries.update_one({"_id": oid}, {"$set": changes})

    updated = await db.deliveries.find_one({"_id": oid})
    return {
        "success": True,
        "message": (
            "Delivery status updated successfully"
            if user.role == ROLE_DELIVERER
            else "Delivery updated successfully"
        ),
        "delivery": serialize_doc(updated),
    }


@router.delete("/{delivery_id}")
async def delete_delivery(
    delivery_id: str,
    admin: Principal = Depends(require_role(ROLE_ADMIN)),
    db=Depends(get_db),
):
    result = await db.deliveries.delete_one({"_id": parse_object_id(delivery_id, "delivery id")})
    if result.deleted_count == 0:
        raise NotFound("Delivery not found")

    return {"success": True, "message": "Delivery deleted successfully"}
