import logging
from datetime import datetime

from config.constants import ACCOUNT_COLLECTIONS, APPROVAL_ROLES, ROLE_ADMIN, STATUS_PENDING
from utils.errors import ValidationFailed
from utils.hash import hash_password
from utils.validators import assert_email_available, normalize_email

logger = logging.getLogger(__name__)


async def create_account(db, role: str, data: dict) -> dict:
    """
    Insert a new account of ``role``. Sellers and deliverers always start
    ``pending``; the stored document is returned without its password.
    """
    collection = db[ACCOUNT_COLLECTIONS[role]]
    data = dict(data)

    email = normalize_email(data.pop("email"))
    await assert_email_available(collection, email)

    try:
        password_hash = hash_password(data.pop("password"))
    except ValueError as e:
        raise ValidationFailed(str(e))

    doc = {
        **data,
        "email": email,
        "password": password_hash,
        "is_active": True,
        "created_at": datetime.utcnow(),
    }

    if role in APPROVAL_ROLES:
        doc.update({
            "status": STATUS_PENDING,
            "approved_by": None,
            "approved_at": None,
        })

    result = await collection.insert_one(doc)
    doc["_id"] = result.inserted_id
    doc.pop("password")

    logger.info("Created %s account %s", role, doc["_id"])
    return doc


async def ensure_bootstrap_admin(db, email: str | None, password: str | None):
    """Create the first admin from env on startup. No-op when it already exists."""
    if not email or not password:
        return None

    existing = await db[ACCOUNT_COLLECTIONS[ROLE_ADMIN]].find_one(
        {"email": normalize_email(email)}, {"_id": 1}
    )
    if existing:
        return None

    return await create_account(
        db,
        ROLE_ADMIN,
        {"name": "Administrator", "email": email, "password": password},
    )
