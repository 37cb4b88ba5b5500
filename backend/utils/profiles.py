"""Shared handlers behind the four account routers."""

from datetime import datetime

from config.constants import ACCOUNT_COLLECTIONS, APPROVAL_FIELDS, ROLE_ADMIN
from models.user import (
    AdminSelfUpdate,
    CustomerAdminUpdate,
    CustomerSelfUpdate,
    DelivererAdminUpdate,
    DelivererSelfUpdate,
    Principal,
    SellerAdminUpdate,
    SellerSelfUpdate,
)
from utils.audit import log_audit
from utils.errors import Forbidden, NotFound
from utils.guards import parse_object_id
from utils.mongo import list_envelope, merge_filters, paginate, regex_filter, serialize_account
from utils.scoping import fetch_in_scope, parse_patch, scope_filter
from utils.validators import assert_email_available, normalize_email

# account role -> actor role -> patch schema
PROFILE_PATCHES = {
    "admin": {"admin": AdminSelfUpdate},
    "customer": {"admin": CustomerAdminUpdate, "customer": CustomerSelfUpdate},
    "seller": {"admin": SellerAdminUpdate, "seller": SellerSelfUpdate},
    "deliverer": {"admin": DelivererAdminUpdate, "deliverer": DelivererSelfUpdate},
}

PLURALS = {
    "admin": "users",
    "customer": "customers",
    "seller": "sellers",
    "deliverer": "deliverers",
}


def _label(role: str) -> str:
    return "User" if role == ROLE_ADMIN else role.capitalize()


async def _scope(db, role: str, principal: Principal, *, write: bool = False) -> dict:
    # admin accounts are only reachable through admin-only routes
    if role == ROLE_ADMIN:
        return {}
    return await scope_filter(db, role, principal, write=write)


async def list_profiles(
    db,
    role: str,
    principal: Principal,
    *,
    page: int | None,
    limit: int | None,
    filters: dict,
) -> dict:
    query = {}
    for field, value in filters.items():
        if value is None:
            continue
        query[field] = value if field == "status" else regex_filter(value)

    scope = await _scope(db, role, principal)
    docs, total, page, limit = await paginate(
        db[ACCOUNT_COLLECTIONS[role]],
        merge_filters(scope, query),
        page=page,
        limit=limit,
        projection={"password": 0},
    )

    plural = PLURALS[role]
    return list_envelope(
        plural,
        [serialize_account(d, role) for d in docs],
        total,
        page,
        limit,
        f"{plural.capitalize()} fetched successfully",
    )


async def _fetch(db, role: str, principal: Principal, account_id: str, *, write: bool, verb: str) -> dict:
    oid = parse_object_id(account_id, f"{role} id")
    collection = db[ACCOUNT_COLLECTIONS[role]]

    if role == ROLE_ADMIN:
        account = await collection.find_one({"_id": oid}, {"password": 0})
        if not account:
            raise NotFound("User not found")
        return account

    try:
        return await fetch_in_scope(
            db, collection, role, principal, oid,
            write=write, verb=verb, projection={"password": 0},
        )
    except NotFound:
        raise NotFound(f"{_label(role)} not found")


async def get_profile(db, role: str, principal: Principal, account_id: str) -> dict:
    account = await _fetch(db, role, principal, account_id, write=False, verb="access")
    key = "user" if role == ROLE_ADMIN else role
    return {"success": True, key: serialize_account(account, role)}


async def update_profile(db, role: str, principal: Principal, account_id: str, payload) -> dict:
    account = await _fetch(db, role, principal, account_id, write=True, verb="update")

    schema = PROFILE_PATCHES[role].get(principal.role)
    if schema is None:
        raise Forbidden(f"Not authorized to update this {role}")

    if isinstance(payload, dict) and any(f in payload for f in APPROVAL_FIELDS):
        raise Forbidden(
            "Approval status can only be changed through the admin approve/reject routes"
        )

    data = parse_patch(payload, schema, principal.role)

    collection = db[ACCOUNT_COLLECTIONS[role]]
    if "email" in data:
        data["email"] = normalize_email(data["email"])
        if data["email"] != account.get("email"):
            await assert_email_available(collection, data["email"], exclude_id=account["_id"])

    data["updated_at"] = datetime.utcnow()
    await collection.update_one({"_id": account["_id"]}, {"$set": data})

    if "is_active" in data:
        await log_audit(
            db,
            actor_id=str(principal.id),
            actor_role=principal.role,
            action=f"{role.upper()}_{'ACTIVATED' if data['is_active'] else 'DEACTIVATED'}",
            metadata={"account_id": account_id},
        )

    updated = await collection.find_one({"_id": account["_id"]}, {"password": 0})
    key = "user" if role == ROLE_ADMIN else role
    return {
        "success": True,
        "message": f"{_label(role)} updated successfully",
        key: serialize_account(updated, role),
    }


async def delete_profile(db, role: str, principal: Principal, account_id: str) -> dict:
    oid = parse_object_id(account_id, f"{role} id")
    result = await db[ACCOUNT_COLLECTIONS[role]].delete_one({"_id": oid})
    if result.deleted_count == 0:
        raise NotFound(f"{_label(role)} not found")

    await log_audit(
        db,
        actor_id=str(principal.id),
        actor_role=principal.role,
        action=f"{role.upper()}_DELETED",
        metadata={"account_id": account_id},
    )

    return {"success": True, "message": f"{_label(role)} deleted successfully"}
