from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from config.constants import ROLE_ADMIN
from database import get_db
from models.user import ApprovalDecision, Principal
from utils.approval import approve_account, list_pending, reject_account
from utils.mongo import list_envelope, serialize_account
from utils.security import require_role

router = APIRouter(prefix="/admin", tags=["Admin"])

# URL segment -> account role
ApprovalKind = Literal["sellers", "deliverers"]

KIND_ROLES = {
    "sellers": "seller",
    "deliverers": "deliverer",
}


# =====================================================
# PENDING ACCOUNTS
# =====================================================

@router.get("/{kind}/pending")
async def pending_accounts(
    kind: ApprovalKind,
    page: int = Query(1),
    limit: int = Query(10),
    admin: Principal = Depends(require_role(ROLE_ADMIN)),
    db=Depends(get_db),
):
    role = KIND_ROLES[kind]
    docs, total, page, limit = await list_pending(db, role, page=page, limit=limit)

    return list_envelope(
        kind, [serialize_account(a, role) for a in docs], total, page, limit,
        f"Pending {kind} fetched successfully",
    )


# =====================================================
# APPROVE / REJECT
# =====================================================

@router.put("/{kind}/{account_id}/approve")
async def approve(
    kind: ApprovalKind,
    account_id: str,
    admin: Principal = Depends(require_role(ROLE_ADMIN)),
    db=Depends(get_db),
):
    role = KIND_ROLES[kind]
    account = await approve_account(db, role, account_id, admin)

    return {
        "success": True,
        "message": f"{role.capitalize()} approved successfully",
        role: serialize_account(account, role),
    }


@router.put("/{kind}/{account_id}/reject")
async def reject(
    kind: ApprovalKind,
    account_id: str,
    data: Optional[ApprovalDecision] = None,
    admin: Principal = Depends(require_role(ROLE_ADMIN)),
    db=Depends(get_db),
):
    role = KIND_ROLES[kind]
    reason = data.reason if data else None
    account = await reject_account(db, role, account_id, admin, reason=reason)

    return {
        "success": True,
        "message": f"{role.capitalize()} rejected successfully",
        role: serialize_account(account, role),
    }
