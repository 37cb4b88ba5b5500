"""
Seller / deliverer approval lifecycle.

    pending  -> approved | rejected
    rejected -> approved
    approved -> rejected

Accounts start ``pending``. Only admins drive transitions, and only through
``approve_account`` / ``reject_account``; generic profile updates never touch
the approval fields. ``approved_by`` / ``approved_at`` describe the current
approval and are cleared on rejection. A later rejection does not cascade to
products, orders or deliveries already created by the account.
"""

import logging
from datetime import datetime

from config.constants import (
    ACCOUNT_COLLECTIONS,
    APPROVAL_ROLES,
    ROLE_DELIVERER,
    STATUS_APPROVED,
    STATUS_PENDING,
    STATUS_REJECTED,
)
from models.user import Principal
from utils.audit import log_audit
from utils.errors import NotFound, ValidationFailed
from utils.guards import parse_object_id
from utils.mongo import paginate

logger = logging.getLogger(__name__)


def approval_status_of(account: dict, role: str) -> str:
    if role not in APPROVAL_ROLES:
        return STATUS_APPROVED

    status = account.get("status")

    # deliverer records created before the approval workflow carry no status
    if role == ROLE_DELIVERER and not status:
        return STATUS_APPROVED

    return status or STATUS_PENDING


def _collection(db, role: str):
    if role not in APPROVAL_ROLES:
        raise ValueError(f"Role '{role}' has no approval lifecycle")
    return db[ACCOUNT_COLLECTIONS[role]]


async def list_pending(db, role: str, *, page: int | None = None, limit: int | None = None):
    """Newest first, one page at a time. Returns ``(docs, total, page, limit)``."""
    return await paginate(
        _collection(db, role),
        {"status": STATUS_PENDING},
        page=page,
        limit=limit,
        projection={"password": 0},
    )


async def approve_account(db, role: str, account_id: str, admin: Principal) -> dict:
    collection = _collection(db, role)
    oid = parse_object_id(account_id, f"{role} id")
    label = role.capitalize()

    account = await collection.find_one({"_id": oid})
    if not account:
        raise NotFound(f"{label} not found")

    if account.get("status") == STATUS_APPROVED:
        raise ValidationFailed(f"{label} is already approved")

    now = datetime.utcnow()

    # conditional write: two concurrent approvals cannot both stamp
    result = await collection.update_one(
        {"_id": oid, "status": {"$ne": STATUS_APPROVED}},
        {"$set": {
            "status": STATUS_APPROVED,
            "approved_by": admin.id,
            "approved_at": now,
        }},
    )
    if result.modified_count == 0:
        raise ValidationFailed(f"{label} is already approved")

    await log_audit(
        db,
        actor_id=str(admin.id),
        actor_role=admin.role,
        action=f"{role.upper()}_APPROVED",
        metadata={"account_id": account_id},
    )
    logger.info("%s %s approved by admin %s", label, account_id, admin.id)

    return await collection.find_one({"_id": oid}, {"password": 0})


async def reject_account(
    db,
    role: str,
    account_id: str,
    admin: Principal,
    reason: str | None = None,
) -> dict:
    collection = _collection(db, role)
    oid = parse_object_id(account_id, f"{role} id")
    label = role.capitalize()

    account = await collection.find_one({"_id": oid})
    if not account:
        raise NotFound(f"{label} not found")

    if account.get("status") == STATUS_REJECTED:
        raise ValidationFailed(f"{label} is already rejected")

    result = await collection.update_one(
        {"_id": oid, "status": {"$ne": STATUS_REJECTED}},
        {"$set": {
            "status": STATUS_REJECTED,
            "approved_by": None,
            "approved_at": None,
            "rejected_at": datetime.utcnow(),
            "rejection_reason": reason,
        }},
    )
    if result.modified_count == 0:
        raise ValidationFailed(f"{label} is already rejected")

    await log_audit(
        db,
        actor_id=str(admin.id),
        actor_role=admin.role,
        action=f"{role.upper()}_REJECTED",
        metadata={"account_id": account_id, "reason": reason},
    )
    logger.info("%s %s rejected by admin %s", label, account_id, admin.id)

    return await collection.find_one({"_id": oid}, {"password": 0})
