from bson import ObjectId
from bson.errors import InvalidId

from utils.errors import ValidationFailed

# -------------------------------
# ObjectId Guard
# -------------------------------

def parse_object_id(value, name: str = "id") -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise ValidationFailed(f"Invalid {name}: {value}")


# -------------------------------
# Approval State Guard
# -------------------------------

def assert_valid_approval_state(account: dict):
    status = account.get("status")
    approved_by = account.get("approved_by")
    approved_at = account.get("approved_at")

    if status == "approved" and (approved_by is None) != (approved_at is None):
        raise RuntimeError(
            "Corrupt approval state: approved_by and approved_at must be set together"
        )
