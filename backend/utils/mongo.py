import math
import re

from bson import ObjectId

from config.constants import APPROVAL_ROLES, DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from utils.guards import assert_valid_approval_state


# -------------------------------
# Serialization
# -------------------------------

def serialize_doc(doc: dict) -> dict:
    if not doc:
        return doc

    doc = dict(doc)
    if "_id" in doc:
        doc["id"] = str(doc.pop("_id"))
    for k, v in doc.items():
        if isinstance(v, ObjectId):
            doc[k] = str(v)
    return doc


def serialize_account(doc: dict, role: str | None = None) -> dict:
    if not doc:
        return doc

    if role in APPROVAL_ROLES:
        assert_valid_approval_state(doc)

    doc = {k: v for k, v in doc.items() if k != "password"}
    return serialize_doc(doc)


# -------------------------------
# Query helpers
# -------------------------------

def regex_filter(value: str) -> dict:
    """Case-insensitive substring match on a user-supplied string."""
    return {"$regex": re.escape(value), "$options": "i"}


def merge_filters(*filters: dict) -> dict:
    """
    AND together non-empty filters. Used to intersect a principal's scope
    with client filters so a query parameter can never widen the scope.
    """
    parts = [f for f in filters if f]
    if not parts:
        return {}
    if len(parts) == 1:
        return parts[0]
    return {"$and": parts}


def normalize_pagination(page: int | None, limit: int | None) -> tuple[int, int, int]:
    page = max(page or 1, 1)
    limit = min(max(limit or DEFAULT_PAGE_LIMIT, 1), MAX_PAGE_LIMIT)
    skip = (page - 1) * limit
    return page, limit, skip


async def paginate(
    collection,
    query: dict,
    *,
    page: int | None,
    limit: int | None,
    projection: dict | None = None,
    sort_field: str = "created_at",
) -> tuple[list, int, int, int]:
    page, limit, skip = normalize_pagination(page, limit)

    total = await collection.count_documents(query)
    cursor = (
        collection
        .find(query, projection)
        .sort(sort_field, -1)
        .skip(skip)
        .limit(limit)
    )
    docs = await cursor.to_list(length=limit)

    return docs, total, page, limit


def list_envelope(name: str, docs: list, total: int, page: int, limit: int, message: str) -> dict:
    """``name`` is the plural resource key, e.g. ``orders`` -> ``totalOrders``."""
    return {
        "success": True,
        "message": message,
        "page": page,
        "limit": limit,
        f"total{name[0].upper()}{name[1:]}": total,
        "totalPages": math.ceil(total / limit) if limit else 0,
        name: docs,
    }
