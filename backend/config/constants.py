# backend/config/constants.py

# -----------------------------
# ROLES
# -----------------------------

ROLE_ADMIN = "admin"
ROLE_CUSTOMER = "customer"
ROLE_SELLER = "seller"
ROLE_DELIVERER = "deliverer"

# role -> account collection
ACCOUNT_COLLECTIONS = {
    ROLE_ADMIN: "users",
    ROLE_CUSTOMER: "customers",
    ROLE_SELLER: "sellers",
    ROLE_DELIVERER: "deliverers",
}

# roles whose accounts go through admin approval
APPROVAL_ROLES = (ROLE_SELLER, ROLE_DELIVERER)

# -----------------------------
# APPROVAL LIFECYCLE
# -----------------------------

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"

APPROVAL_FIELDS = ("status", "approved_by", "approved_at")

# -----------------------------
# PAGINATION
# -----------------------------

DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 100

# -----------------------------
# ACCOUNTS
# -----------------------------

MIN_PASSWORD_LENGTH = 8
