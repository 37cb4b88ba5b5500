from fastapi import APIRouter, Depends, status

from config.constants import ACCOUNT_COLLECTIONS, ROLE_CUSTOMER, ROLE_DELIVERER, ROLE_SELLER
from database import get_db
from models.user import CustomerCreate, DelivererCreate, LoginRequest, Principal, SellerCreate
from utils.accounts import create_account
from utils.errors import AccountDeactivated, Unauthenticated
from utils.hash import verify_password
from utils.jwt import create_access_token
from utils.mongo import serialize_account
from utils.revocation import RevocationStore
from utils.security import get_bearer_token, get_current_user, get_revocation_store, revoke
from utils.validators import normalize_email

router = APIRouter(prefix="/auth", tags=["Auth"])


def _token_response(account: dict, role: str, message: str) -> dict:
    return {
        "success": True,
        "message": message,
        "token": create_access_token(account["_id"], role),
        "role": role,
        "user": serialize_account(account, role),
    }


# ======================
# Register
# ======================

@router.post("/register/customer", status_code=status.HTTP_201_CREATED)
async def register_customer(data: CustomerCreate, db=Depends(get_db)):
    customer = await create_account(db, ROLE_CUSTOMER, data.model_dump())
    return _token_response(customer, ROLE_CUSTOMER, "Customer registered successfully")


@router.post("/register/seller", status_code=status.HTTP_201_CREATED)
async def register_seller(data: SellerCreate, db=Depends(get_db)):
    seller = await create_account(db, ROLE_SELLER, data.model_dump())
    return _token_response(
        seller,
        ROLE_SELLER,
        "Seller registered successfully. Your account is pending admin approval.",
    )


@router.post("/register/deliverer", status_code=status.HTTP_201_CREATED)
async def register_deliverer(data: DelivererCreate, db=Depends(get_db)):
    deliverer = await create_account(db, ROLE_DELIVERER, data.model_dump())
    return _token_response(
        deliverer,
        ROLE_DELIVERER,
        "Deliverer registered successfully. Your account is pending admin approval.",
    )


# ======================
# Login / Logout
# ======================

@router.post("/login")
async def login(data: LoginRequest, db=Depends(get_db)):
    role = data.role.value
    account = await db[ACCOUNT_COLLECTIONS[role]].find_one(
        {"email": normalize_email(data.email)}
    )

    if not account or not verify_password(data.password, account.get("password")):
        raise Unauthenticated("Invalid email or password")

    if account.get("is_active") is False:
        raise AccountDeactivated("Account is deactivated")

    return _token_response(account, role, "Login successful")


@router.post("/logout")
async def logout(
    user: Principal = Depends(get_current_user),
    token: str = Depends(get_bearer_token),
    store: RevocationStore = Depends(get_revocation_store),
):
    await revoke(token, store)
    return {"success": True, "message": "Logged out successfully"}


# ======================
# Current User
# ======================

@router.get("/me")
async def me(user: Principal = Depends(get_current_user)):
    return {
        "success": True,
        "user": {
            "id": str(user.id),
            "role": user.role,
            "email": user.email,
            "approval_status": user.approval_status,
        },
    }
