from utils.errors import Conflict


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def assert_email_available(collection, email: str, exclude_id=None):
    """Email is unique per account collection; ``exclude_id`` skips the owner."""
    query = {"email": normalize_email(email)}
    if exclude_id is not None:
        query["_id"] = {"$ne": exclude_id}

    if await collection.find_one(query, {"_id": 1}):
        raise Conflict("Email already registered")
