from fastapi import APIRouter, Depends, Query, status
from datetime import datetime
from typing import Optional

from config.constants import ROLE_CUSTOMER
from database import get_db
from models.order import ReviewCreate, ReviewUpdate
from models.user import Principal
from utils.errors import Conflict, NotFound, ValidationFailed
from utils.guards import parse_object_id
from utils.mongo import list_envelope, paginate, serialize_doc
from utils.scoping import fetch_in_scope
from utils.security import get_optional_user, require_role

router = APIRouter(
    prefix="/reviews",
    tags=["Reviews"]
)


# -------------------------------------------------
# PUBLIC: LIST / DETAIL
# -------------------------------------------------

@router.get("")
async def list_reviews(
    page: int = Query(1),
    limit: int = Query(10),
    product_id: Optional[str] = None,
    order_id: Optional[str] = None,
    my_reviews: bool = False,
    user: Optional[Principal] = Depends(get_optional_user),
    db=Depends(get_db),
):
    query = {}

    if product_id:
        query["product_id"] = parse_object_id(product_id, "product id")

    if order_id:
        query["order_id"] = parse_object_id(order_id, "order id")

    if my_reviews and user and user.role == ROLE_CUSTOMER:
        query["customer_id"] = user.id

    docs, total, page, limit = await paginate(db.reviews, query, page=page, limit=limit)

    return list_envelope(
        "reviews", [serialize_doc(r) for r in docs], total, page, limit,
        "Reviews fetched successfully",
    )


@router.get("/{review_id}")
async def get_review(review_id: str, db=Depends(get_db)):
    review = await db.reviews.find_one({"_id": parse_object_id(review_id, "review id")})
    if not review:
        raise NotFound("Review not found")

    return {"success": True, "review": serialize_doc(review)}


# -------------------------------------------------
# CREATE REVIEW (CUSTOMER, OWN ORDER, ONCE)
# -------------------------------------------------

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_review(
    data: ReviewCreate,
    customer: Principal = Depends(require_role(ROLE_CUSTOMER)),
    db=Depends(get_db),
):
    order_oid = parse_object_id(data.order_id, "order id")
    product_oid = parse_object_id(data.product_id, "product id")

    # 1. order must exist and belong to the caller
    order = await fetch_in_scope(
        db, db.orders, "order", customer, order_oid, verb="create review for"
    )

    # 2. product must exist and match the order
    product = await db.products.find_one({"_id": product_oid}, {"_id": 1})
    if not product:
        raise NotFound("Product not found")

    if order["product_id"] != product_oid:
        raise ValidationFailed("Product does not match the order")

    # 3. one review per order
    if await db.reviews.find_one({"order_id": order_oid}, {"_id": 1}):
        raise Conflict("Review already exists for this order")

    review = {
        "customer_id": customer.id,
        "order_id": order_oid,
        "product_id": product_oid,
        "rating": data.rating,
        "comment": data.comment,
        "created_at": datetime.utcnow(),
    }

    result = await db.reviews.insert_one(review)
    review["_id"] = result.inserted_id

    return {
        "success": True,
        "message": "Review created successfully",
        "review": serialize_doc(review),
    }


# -------------------------------------------------
# UPDATE / DELETE (OWN REVIEWS)
# -------------------------------------------------

@router.put("/{review_id}")
async def update_review(
    review_id: str,
    data: ReviewUpdate,
    customer: Principal = Depends(require_role(ROLE_CUSTOMER)),
    db=Depends(get_db),
):
    oid = parse_object_id(review_id, "review id")
    await fetch_in_scope(db, db.reviews, "review", customer, oid, write=True, verb="update")

    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationFailed("No fields to update")

    changes["updated_at"] = datetime.utcnow()
    await db.reviews.update_one({"_id": oid}, {"$set": changes})

    review = await db.reviews.find_one({"_id": oid})
    return {
        "success": True,
        "message": "Review updated successfully",
        "review": serialize_doc(review),
    }


@router.delete("/{review_id}")
async def delete_review(
    review_id: str,
    customer: Principal = Depends(require_role(ROLE_CUSTOMER)),
    db=Depends(get_db),
):
    oid = parse_object_id(review_id, "review id")
    await fetch_in_scope(db, db.reviews, "review", customer, oid, write=True, verb="delete")

    await db.reviews.delete_one({"_id": oid})

    return {"success": True, "message": "Review deleted successfully"}
