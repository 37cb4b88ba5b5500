# tests/test_approval.py

"""
Tests for the seller/deliverer approval workflow.
"""

import asyncio

import pytest
from bson import ObjectId

from models.user import Principal
from utils.approval import approval_status_of, approve_account
from utils.errors import ValidationFailed


SELLER_SIGNUP = {
    "name": "Shop Owner",
    "email": "owner@example.com",
    "password": "password123",
    "shop_name": "Owner Goods",
    "phone_no": "0123456789",
    "address": "5 Side St",
}


def _pending(seed, role):
    return seed.account(role, status="pending", approved_by=None, approved_at=None)


def test_approval_status_rules():
    assert approval_status_of({}, "customer") == "approved"
    assert approval_status_of({}, "admin") == "approved"
    assert approval_status_of({}, "deliverer") == "approved"
    assert approval_status_of({"status": None}, "deliverer") == "approved"
    assert approval_status_of({}, "seller") == "pending"
    assert approval_status_of({"status": "rejected"}, "deliverer") == "rejected"


def test_registration_starts_pending_then_approval_unlocks(client, admin, auth_headers):
    response = client.post("/api/auth/register/seller", json=SELLER_SIGNUP)
    assert response.status_code == 201
    body = response.json()
    assert body["user"]["status"] == "pending"
    assert body["user"]["approved_by"] is None
    seller_headers = {"Authorization": f"Bearer {body['token']}"}
    seller_id = body["user"]["id"]

    product = {"name": "Lamp", "price": 20}
    assert client.post("/api/products", json=product, headers=seller_headers).status_code == 403

    admin_headers = auth_headers(admin, "admin")
    pending = client.get("/api/admin/sellers/pending", headers=admin_headers).json()
    assert pending["totalSellers"] == 1
    assert pending["sellers"][0]["id"] == seller_id

    response = client.put(f"/api/admin/sellers/{seller_id}/approve", headers=admin_headers)
    assert response.status_code == 200
    approved = response.json()["seller"]
    assert approved["status"] == "approved"
    assert approved["approved_by"] == str(admin["_id"])
    assert approved["approved_at"] is not None
    assert "password" not in approved

    assert client.post("/api/products", json=product, headers=seller_headers).status_code == 201


def test_approve_twice_is_rejected(client, admin, seed, auth_headers):
    seller = _pending(seed, "seller")
    headers = auth_headers(admin, "admin")

    assert client.put(f"/api/admin/sellers/{seller['_id']}/approve", headers=headers).status_code == 200
    first_stamp = seed.find("sellers", {"_id": seller["_id"]})["approved_at"]

    response = client.put(f"/api/admin/sellers/{seller['_id']}/approve", headers=headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Seller is already approved"
    assert seed.find("sellers", {"_id": seller["_id"]})["approved_at"] == first_stamp


def test_reject_blocks_and_reapproval_restores(client, admin, seed, auth_headers):
    deliverer = _pending(seed, "deliverer")
    admin_headers = auth_headers(admin, "admin")
    deliverer_headers = auth_headers(deliverer, "deliverer")

    response = client.put(
        f"/api/admin/deliverers/{deliverer['_id']}/reject",
        json={"reason": "Missing documents"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["deliverer"]["status"] == "rejected"
    assert response.json()["deliverer"]["rejection_reason"] == "Missing documents"

    response = client.get("/api/deliveries", headers=deliverer_headers)
    assert response.status_code == 403
    assert response.json()["message"] == "Your deliverer account has been rejected."

    response = client.put(f"/api/admin/deliverers/{deliverer['_id']}/reject", headers=admin_headers)
    assert response.status_code == 400

    response = client.put(f"/api/admin/deliverers/{deliverer['_id']}/approve", headers=admin_headers)
    assert response.status_code == 200
    assert client.get("/api/deliveries", headers=deliverer_headers).status_code == 200


def test_unknown_and_malformed_ids(client, admin, auth_headers):
    headers = auth_headers(admin, "admin")

    response = client.put(f"/api/admin/sellers/{ObjectId()}/approve", headers=headers)
    assert response.status_code == 404
    assert response.json()["message"] == "Seller not found"

    response = client.put("/api/admin/sellers/not-an-id/approve", headers=headers)
    assert response.status_code == 400


def test_only_admin_may_approve(client, seller, seed, auth_headers):
    other = _pending(seed, "seller")

    response = client.put(
        f"/api/admin/sellers/{other['_id']}/approve",
        headers=auth_headers(seller, "seller"),
    )

    assert response.status_code == 403
    assert seed.find("sellers", {"_id": other["_id"]})["status"] == "pending"


def test_generic_update_cannot_change_status(client, admin, seed, auth_headers):
    seller = _pending(seed, "seller")

    for headers in (auth_headers(admin, "admin"), auth_headers(seller, "seller")):
        response = client.put(
            f"/api/sellers/{seller['_id']}",
            json={"status": "approved"},
            headers=headers,
        )
        assert response.status_code == 403

    assert seed.find("sellers", {"_id": seller["_id"]})["status"] == "pending"


def test_generic_update_cannot_set_approver(client, admin, deliverer, auth_headers):
    response = client.put(
        f"/api/deliverers/{deliverer['_id']}",
        json={"approved_by": str(admin["_id"])},
        headers=auth_headers(admin, "admin"),
    )

    assert response.status_code == 403


def test_approval_is_audited(client, admin, seed, auth_headers):
    seller = _pending(seed, "seller")

    client.put(f"/api/admin/sellers/{seller['_id']}/approve", headers=auth_headers(admin, "admin"))

    entry = seed.find("audit_logs", {"action": "SELLER_APPROVED"})
    assert entry["actor_id"] == str(admin["_id"])
    assert entry["metadata"]["account_id"] == str(seller["_id"])


def test_pending_list_excludes_decided_accounts(client, admin, seed, auth_headers):
    _pending(seed, "deliverer")
    seed.account("deliverer")
    seed.account("deliverer", status="rejected")

    body = client.get("/api/admin/deliverers/pending", headers=auth_headers(admin, "admin")).json()

    assert body["totalDeliverers"] == 1


def test_concurrent_approvals_stamp_once(db, seed):
    seller = _pending(seed, "seller")
    first = Principal(id=ObjectId(), role="admin", email="a@example.com")
    second = Principal(id=ObjectId(), role="admin", email="b@example.com")

    async def race():
        return await asyncio.gather(
            approve_account(db, "seller", str(seller["_id"]), first),
            approve_account(db, "seller", str(seller["_id"]), second),
            return_exceptions=True,
        )

    results = asyncio.run(race())

    assert sum(isinstance(r, ValidationFailed) for r in results) == 1
    stored = seed.find("sellers", {"_id": seller["_id"]})
    assert stored["approved_by"] in (first.id, second.id)


def test_unknown_kind_is_rejected(client, admin, auth_headers):
    response = client.get("/api/admin/customers/pending", headers=auth_headers(admin, "admin"))

    assert response.status_code == 400


def test_rejecting_approved_account_clears_approval_stamp(client, admin, seller, seed, auth_headers):
    response = client.put(
        f"/api/admin/sellers/{seller['_id']}/reject",
        headers=auth_headers(admin, "admin"),
    )

    assert response.status_code == 200
    assert response.json()["seller"]["approved_by"] is None
    assert response.json()["seller"]["approved_at"] is None
    stored = seed.find("sellers", {"_id": seller["_id"]})
    assert stored["approved_by"] is None
    assert stored["rejected_at"] is not None


def test_pending_list_is_paginated(client, admin, seed, auth_headers):
    for _ in range(3):
        _pending(seed, "seller")

    body = client.get(
        "/api/admin/sellers/pending",
        params={"page": 2, "limit": 2},
        headers=auth_headers(admin, "admin"),
    ).json()

    assert body["totalSellers"] == 3
    assert body["totalPages"] == 2
    assert len(body["sellers"]) == 1

    body = client.get(
        "/api/admin/sellers/pending",
        params={"limit": 1000},
        headers=auth_headers(admin, "admin"),
    ).json()
    assert body["limit"] == 100
