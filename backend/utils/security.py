import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import ExpiredSignatureError, JWTError

from config.constants import ACCOUNT_COLLECTIONS, APPROVAL_ROLES, STATUS_REJECTED
from database import get_db
from models.user import Principal
from utils.approval import approval_status_of
from utils.errors import AccountDeactivated, AppError, Forbidden, Unauthenticated
from utils.jwt import decode_token
from utils.revocation import RevocationStore

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class TokenClaims:
    subject_id: str
    role: str
    expires_at: Optional[datetime]


def get_revocation_store(request: Request) -> RevocationStore:
    return request.app.state.revocation_store


# =====================================================
# CREDENTIAL VALIDATOR
# =====================================================

async def validate_credential(token: Optional[str], store: RevocationStore) -> TokenClaims:
    if not token:
        raise Unauthenticated("Not authorized to access this route")

    if await store.contains(token):
        raise Unauthenticated("Token has been invalidated. Please login again.")

    try:
        payload = decode_token(token)
    except ExpiredSignatureError:
        raise Unauthenticated("Your token has expired! Please log in again.")
    except JWTError:
        raise Unauthenticated("Invalid token. Please log in again!")

    subject_id = payload.get("sub")
    role = payload.get("role")
    if not subject_id or not role:
        raise Unauthenticated("Invalid token payload")

    exp = payload.get("exp")
    expires_at = datetime.utcfromtimestamp(exp) if isinstance(exp, (int, float)) else None

    return TokenClaims(subject_id=subject_id, role=role, expires_at=expires_at)


async def revoke(token: str, store: RevocationStore) -> None:
    """Invalidate ``token`` before it expires. Safe to call twice."""
    expires_at = None
    try:
        exp = decode_token(token).get("exp")
        if isinstance(exp, (int, float)):
            expires_at = datetime.utcfromtimestamp(exp)
    except JWTError:
        # unverifiable tokens are still revoked, just never pruned
        pass

    await store.add(token, expires_at)
    logger.info("Token revoked (expires_at=%s)", expires_at)


# =====================================================
# IDENTITY RESOLVER
# =====================================================

async def resolve_principal(db, subject_id: str, role: str) -> Principal:
    collection_name = ACCOUNT_COLLECTIONS.get(role)
    if not collection_name:
        raise Unauthenticated("Invalid role")

    try:
        oid = ObjectId(subject_id)
    except (InvalidId, TypeError):
        raise Unauthenticated("User not found")

    account = await db[collection_name].find_one({"_id": oid}, {"password": 0})
    if not account:
        raise Unauthenticated("User not found")

    if account.get("is_active") is False:
        raise AccountDeactivated("Account is deactivated")

    return Principal(
        id=account["_id"],
        role=role,
        email=account.get("email"),
        approval_status=approval_status_of(account, role),
    )


async def authenticate(db, token: Optional[str], store: RevocationStore) -> Principal:
    claims = await validate_credential(token, store)
    return await resolve_principal(db, claims.subject_id, claims.role)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db=Depends(get_db),
    store: RevocationStore = Depends(get_revocation_store),
) -> Principal:
    token = credentials.credentials if credentials else None
    return await authenticate(db, token, store)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db=Depends(get_db),
    store: RevocationStore = Depends(get_revocation_store),
) -> Optional[Principal]:
    """Like ``get_current_user`` but anonymous instead of failing."""
    if not credentials:
        return None

    try:
        return await authenticate(db, credentials.credentials, store)
    except AppError as e:
        logger.debug("Optional auth ignored credential: %s", e.message)
        return None


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    return credentials.credentials if credentials else None


# =====================================================
# ROLE GATE
# =====================================================

def _flatten_roles(roles) -> list:
    flat = []
    for role in roles:
        if isinstance(role, (list, tuple, set, frozenset)):
            flat.extend(_flatten_roles(role))
        else:
            flat.append(getattr(role, "value", role))
    return flat


def authorize(principal: Optional[Principal], *roles) -> Principal:
    allowed = _flatten_roles(roles)

    if principal is None:
        raise Unauthenticated("Not authorized to access this route")

    if principal.role not in allowed:
        logger.warning(
            "Access denied: %s '%s' needs one of %s",
            principal.role,
            principal.id,
            allowed,
        )
        raise Forbidden(
            f"User role '{principal.role}' is not authorized to access this route. "
            f"Required roles: {', '.join(allowed)}"
        )

    if principal.role in APPROVAL_ROLES and not principal.is_approved:
        if principal.approval_status == STATUS_REJECTED:
            raise Forbidden(f"Your {principal.role} account has been rejected.")
        raise Forbidden(
            f"Your {principal.role} account is pending approval. "
            "Please wait for admin approval."
        )

    return principal


def require_role(*roles):
    async def checker(user: Principal = Depends(get_current_user)) -> Principal:
        return authorize(user, *roles)

    return checker
