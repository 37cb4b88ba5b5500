from fastapi import APIRouter, Depends, Query, status
from datetime import datetime
from typing import Optional

from config.constants import ROLE_ADMIN, ROLE_CUSTOMER, ROLE_SELLER
from database import get_db
from models.order import OrderCreate, OrderUpdate
from models.product import discounted_total
from models.user import Principal
from utils.errors import NotFound, ValidationFailed
from utils.guards import parse_object_id
from utils.mongo import list_envelope, merge_filters, paginate, serialize_doc
from utils.scoping import fetch_in_scope, scope_filter
from utils.security import require_role

router = APIRouter(
    prefix="/orders",
    tags=["Orders"]
)


# ======================================================
# LIST ORDERS (SCOPED)
# ======================================================

@router.get("")
async def list_orders(
    page: int = Query(1),
    limit: int = Query(10),
    order_status: Optional[str] = Query(None, alias="status"),
    user: Principal = Depends(require_role(ROLE_ADMIN, ROLE_CUSTOMER, ROLE_SELLER)),
    db=Depends(get_db),
):
    scope = await scope_filter(db, "order", user)
    query = {"status": order_status} if order_status else {}

    docs, total, page, limit = await paginate(
        db.orders, merge_filters(scope, query), page=page, limit=limit
    )

    return list_envelope(
        "orders", [serialize_doc(o) for o in docs], total, page, limit,
        "Orders fetched successfully",
    )


@router.get("/{order_id}")
async def get_order(
    order_id: str,
    user: Principal = Depends(require_role(ROLE_ADMIN, ROLE_CUSTOMER, ROLE_SELLER)),
    db=Depends(get_db),
):
    oid = parse_object_id(order_id, "order id")
    order = await fetch_in_scope(db, db.orders, "order", user, oid, verb="access")

    return {"success": True, "order": serialize_doc(order)}


# ======================================================
# CREATE ORDER (CUSTOMER)
# ======================================================

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_order(
    data: OrderCreate,
    customer: Principal = Depends(require_role(ROLE_CUSTOMER)),
    db=Depends(get_db),
):
    product = await db.products.find_one({"_id": parse_object_id(data.product_id, "product id")})
    if not product:
        raise NotFound("Product not found")

    if not product.get("instock", True):
        raise ValidationFailed("Product is out of stock")

    now = datetime.utcnow()
    order = {
        "customer_id": customer.id,
        "product_id": product["_id"],
        "quantity": data.quantity,
        "total_amount": discounted_total(
            product.get("price", 0), product.get("discount", 0), data.quantity
        ),
        "status": "pending",
        "order_date": now,
        "created_at": now,
    }

    result = await db.orders.insert_one(order)
    order["_id"] = result.inserted_id

    return {
        "success": True,
        "message": "Order created successfully",
        "order": serialize_doc(order),
    }


# ======================================================
# UPDATE (OWNING SELLER / ADMIN), DELETE (ADMIN)
# ======================================================

@router.put("/{order_id}")
async def update_order(
    order_id: str,
    data: OrderUpdate,
    user: Principal = Depends(require_role(ROLE_ADMIN, ROLE_SELLER)),
    db=Depends(get_db),
):
    oid = parse_object_id(order_id, "order id")
    await fetch_in_scope(db, db.orders, "order", user, oid, write=True, verb="update")

    await db.orders.update_one(
        {"_id": oid},
        {"$set": {"status": data.status, "updated_at": datetime.utcnow()}},
    )

    order = await db.orders.find_one({"_id": oid})
    return {
        "success": True,
        "message": "Order updated successfully",
        "order": serialize_doc(order),
    }


@router.delete("/{order_id}")
async def delete_order(
    order_id: str,
    admin: Principal = Depends(require_role(ROLE_ADMIN)),
    db=Depends(get_db),
):
    result = await db.orders.delete_one({"_id": parse_object_id(order_id, "order id")})
    if result.deleted_count == 0:
        raise NotFound("Order not found")

    return {"success": True, "message": "Order deleted successfully"}
