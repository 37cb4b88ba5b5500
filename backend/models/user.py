from dataclasses import dataclass
from enum import Enum
from typing import Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from config.constants import MIN_PASSWORD_LENGTH


class Role(str, Enum):
    ADMIN = "admin"
    CUSTOMER = "customer"
    SELLER = "seller"
    DELIVERER = "deliverer"


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Principal:
    """Authenticated identity attached to a request. Never persisted."""

    id: ObjectId
    role: str
    email: Optional[str]
    approval_status: str = ApprovalStatus.APPROVED.value

    @property
    def is_approved(self) -> bool:
        return self.approval_status == ApprovalStatus.APPROVED.value


# =========================
# AUTH
# =========================

PHONE_PATTERN = r"^[0-9]{10,15}$"


class LoginRequest(BaseModel):
    email: EmailStr
    password: str
    role: Role = Role.CUSTOMER


class _AccountCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)


class AdminCreate(_AccountCreate):
    pass


class CustomerCreate(_AccountCreate):
    phone_no: str = Field(..., pattern=PHONE_PATTERN)
    address: str = ""


class SellerCreate(_AccountCreate):
    shop_name: str = Field(..., min_length=2, max_length=100)
    phone_no: str = Field(..., pattern=PHONE_PATTERN)
    address: str = Field(..., min_length=1)


class DelivererCreate(_AccountCreate):
    phone_no: str = Field(..., pattern=PHONE_PATTERN)
    vehicle_no: Optional[str] = None
    vehicle_type: Optional[str] = None
    address: Optional[str] = None


# =========================
# PROFILE PATCHES (PER ROLE)
# =========================
# Only the fields declared on a patch schema may be written by that role.
# Approval fields (status / approved_by / approved_at) appear on none of
# them: they change only through the admin approve / reject routes.

class _ProfilePatch(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=2, max_length=50)
    email: Optional[EmailStr] = None


class AdminSelfUpdate(_ProfilePatch):
    is_active: Optional[bool] = None


class CustomerSelfUpdate(_ProfilePatch):
    phone_no: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    address: Optional[str] = None


class CustomerAdminUpdate(CustomerSelfUpdate):
    is_active: Optional[bool] = None


class SellerSelfUpdate(_ProfilePatch):
    shop_name: Optional[str] = Field(None, min_length=2, max_length=100)
    phone_no: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    address: Optional[str] = None


class SellerAdminUpdate(SellerSelfUpdate):
    is_active: Optional[bool] = None


class DelivererSelfUpdate(_ProfilePatch):
    phone_no: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    vehicle_no: Optional[str] = None
    vehicle_type: Optional[str] = None
    address: Optional[str] = None


class DelivererAdminUpdate(DelivererSelfUpdate):
    is_active: Optional[bool] = None


class ApprovalDecision(BaseModel):
    reason: Optional[str] = None
