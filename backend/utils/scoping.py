"""
Ownership scoping.

Every (resource, role) pair maps to one static rule that yields a Mongo filter.
List endpoints AND that filter into their query; single-item endpoints check
that the target document matches the same filter, so list and item access can
never disagree. Admins always get the empty filter.

``READ_SCOPES`` governs viewing, ``WRITE_SCOPES`` governs update/delete. A
role missing from the table for a resource has no access to it at all; the
route's role gate normally rejects such callers first.
"""

from pydantic import BaseModel, ValidationError

from config.constants import ROLE_ADMIN
from models.user import Principal
from utils.errors import Forbidden, NotFound, ValidationFailed
from utils.mongo import merge_filters

PUBLIC = "public"


# -------------------------------
# Derived ownership
# -------------------------------

async def _ids(collection, query: dict) -> list:
    return [doc["_id"] async for doc in collection.find(query, {"_id": 1})]


async def seller_product_ids(db, seller_id) -> list:
    return await _ids(db.products, {"seller_id": seller_id})


async def seller_order_ids(db, seller_id) -> list:
    product_ids = await seller_product_ids(db, seller_id)
    return await _ids(db.orders, {"product_id": {"$in": product_ids}})


async def customer_order_ids(db, customer_id) -> list:
    return await _ids(db.orders, {"customer_id": customer_id})


# -------------------------------
# Rules
# -------------------------------

async def _self(db, principal: Principal) -> dict:
    return {"_id": principal.id}


async def _everything(db, principal: Principal) -> dict:
    return {}


async def _own_products(db, principal: Principal) -> dict:
    return {"seller_id": principal.id}


async def _customer_orders(db, principal: Principal) -> dict:
    return {"customer_id": principal.id}


async def _seller_orders(db, principal: Principal) -> dict:
    return {"product_id": {"$in": await seller_product_ids(db, principal.id)}}


async def _customer_deliveries(db, principal: Principal) -> dict:
    return {"order_id": {"$in": await customer_order_ids(db, principal.id)}}


async def _seller_deliveries(db, principal: Principal) -> dict:
    return {"order_id": {"$in": await seller_order_ids(db, principal.id)}}


async def _assigned_deliveries(db, principal: Principal) -> dict:
    return {"deliverer_id": principal.id}


async def _own_by_customer(db, principal: Principal) -> dict:
    return {"customer_id": principal.id}


async def _seller_payments(db, principal: Principal) -> dict:
    return {"order_id": {"$in": await seller_order_ids(db, principal.id)}}


READ_SCOPES = {
    "customer": {
        "customer": _self,
    },
    "seller": {
        "seller": _self,
    },
    "deliverer": {
        "deliverer": _self,
        # sellers look deliverers up to assign deliveries
        "seller": _everything,
    },
    "product": PUBLIC,
    "order": {
        "customer": _customer_orders,
        "seller": _seller_orders,
    },
    "delivery": {
        "customer": _customer_deliveries,
        "seller": _seller_deliveries,
        "deliverer": _assigned_deliveries,
    },
    "review": PUBLIC,
    "payment": {
        "customer": _own_by_customer,
        "seller": _seller_payments,
    },
}

WRITE_SCOPES = {
    "customer": {
        "customer": _self,
    },
    "seller": {
        "seller": _self,
    },
    "deliverer": {
        "deliverer": _self,
    },
    "product": {
        "seller": _own_products,
    },
    "order": {
        "seller": _seller_orders,
    },
    "delivery": {
        "deliverer": _assigned_deliveries,
    },
    "review": {
        "customer": _own_by_customer,
    },
    "payment": {
        "customer": _own_by_customer,
    },
}


# -------------------------------
# Public API
# -------------------------------

async def scope_filter(db, resource: str, principal: Principal, *, write: bool = False) -> dict:
    if principal.role == ROLE_ADMIN:
        return {}

    rules = (WRITE_SCOPES if write else READ_SCOPES)[resource]
    if rules == PUBLIC:
        return {}

    rule = rules.get(principal.role)
    if rule is None:
        raise Forbidden(f"Role '{principal.role}' has no access to {resource} records")

    return await rule(db, principal)


async def fetch_in_scope(
    db,
    collection,
    resource: str,
    principal: Principal,
    oid,
    *,
    write: bool = False,
    verb: str = "access",
    projection: dict | None = None,
) -> dict:
    """
    Load one document and check it against the principal's scope.
    404 if it does not exist, 403 if it exists outside the scope.
    """
    doc = await collection.find_one({"_id": oid}, projection)
    if not doc:
        raise NotFound(f"{resource.capitalize()} not found")

    scope = await scope_filter(db, resource, principal, write=write)
    if scope:
        match = await collection.count_documents(merge_filters({"_id": oid}, scope))
        if not match:
            raise Forbidden(f"Not authorized to {verb} this {resource}")

    return doc


# -------------------------------
# Allow-listed patches
# -------------------------------

CREDENTIAL_FIELDS = ("password",)


def parse_patch(payload, schema: type[BaseModel], role: str) -> dict:
    """
    Validate an update body against the patch schema allowed for ``role``.
    Credential fields and fields outside the schema are refused with 403;
    malformed values with 400. Returns only the fields actually sent.
    """
    if not isinstance(payload, dict):
        raise ValidationFailed("Request body must be a JSON object")

    for field in CREDENTIAL_FIELDS:
        if field in payload:
            raise Forbidden(f"{field.capitalize()} cannot be updated through this route")

    for field in payload:
        if field not in schema.model_fields:
            raise Forbidden(f"Field '{field}' cannot be updated by role '{role}'")

    try:
        patch = schema.model_validate(payload)
    except ValidationError as e:
        first = e.errors()[0]
        loc = ".".join(str(p) for p in first.get("loc", ()))
        raise ValidationFailed(f"{loc}: {first.get('msg')}" if loc else first.get("msg"))

    data = patch.model_dump(exclude_unset=True)
    if not data:
        raise ValidationFailed("No fields to update")

    return data
