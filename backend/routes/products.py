from fastapi import APIRouter, Depends, Query, status
from typing import Optional
from datetime import datetime

from config.constants import ROLE_ADMIN, ROLE_SELLER
from database import get_db
from models.product import ProductCreate, ProductUpdate
from models.user import Principal
from utils.guards import parse_object_id
from utils.errors import NotFound, ValidationFailed
from utils.mongo import list_envelope, paginate, regex_filter, serialize_doc
from utils.scoping import fetch_in_scope
from utils.security import get_optional_user, require_role

router = APIRouter(prefix="/products", tags=["Products"])


# =========================
# LIST PRODUCTS (PUBLIC)
# =========================

@router.get("")
async def list_products(
    page: int = Query(1),
    limit: int = Query(10),
    name: Optional[str] = None,
    instock: Optional[bool] = None,
    user: Optional[Principal] = Depends(get_optional_user),
    db=Depends(get_db),
):
    query: dict = {}

    # a signed-in seller browsing the catalogue sees their own listings
    if user and user.role == ROLE_SELLER:
        query["seller_id"] = user.id

    if name:
        query["name"] = regex_filter(name)

    if instock is not None:
        query["instock"] = instock

    docs, total, page, limit = await paginate(db.products, query, page=page, limit=limit)

    return list_envelope(
        "products", [serialize_doc(p) for p in docs], total, page, limit,
        "Products fetched successfully",
    )


# =========================
# PRODUCT DETAIL (PUBLIC)
# =========================

@router.get("/{product_id}")
async def product_detail(product_id: str, db=Depends(get_db)):
    product = await db.products.find_one({"_id": parse_object_id(product_id, "product id")})

    if not product:
        raise NotFound("Product not found")

    return {"success": True, "product": serialize_doc(product)}


# =========================
# SELLER CREATE PRODUCT
# =========================

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(
    data: ProductCreate,
    seller: Principal = Depends(require_role(ROLE_SELLER)),
    db=Depends(get_db),
):
    now = datetime.utcnow()

    product_doc = {
        **data.model_dump(),
        "seller_id": seller.id,
        "created_at": now,
        "updated_at": now,
    }

    result = await db.products.insert_one(product_doc)
    product_doc["_id"] = result.inserted_id

    return {
        "success": True,
        "message": "Product created successfully",
        "product": serialize_doc(product_doc),
    }


# =========================
# UPDATE / DELETE (OWNER OR ADMIN)
# =========================

@router.put("/{product_id}")
async def update_product(
    product_id: str,
    data: ProductUpdate,
    user: Principal = Depends(require_role(ROLE_ADMIN, ROLE_SELLER)),
    db=Depends(get_db),
):
    oid = parse_object_id(product_id, "product id")
    await fetch_in_scope(db, db.products, "product", user, oid, write=True, verb="update")

    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationFailed("No fields to update")

    changes["updated_at"] = datetime.utcnow()
    await db.products.update_one({"_id": oid}, {"$set": changes})

    product = await db.products.find_one({"_id": oid})
    return {
        "success": True,
        "message": "Product updated successfully",
        "product": serialize_doc(product),
    }


@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    user: Principal = Depends(require_role(ROLE_ADMIN, ROLE_SELLER)),
    db=Depends(get_db),
):
    oid = parse_object_id(product_id, "product id")
    await fetch_in_scope(db, db.products, "product", user, oid, write=True, verb="delete")

    await db.products.delete_one({"_id": oid})

    return {"success": True, "message": "Product deleted successfully"}
