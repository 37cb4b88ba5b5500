# tests/conftest.py

"""
Pytest configuration and shared fixtures.

The app runs against an in-memory Mongo (mongomock-motor) and an in-memory
revocation store; documents are seeded directly so each test controls the
exact ownership graph it exercises.
"""

import asyncio
import os
from datetime import datetime
from typing import Generator

os.environ["ENV"] = "test"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["REVOCATION_BACKEND"] = "memory"
os.environ["ADMIN_EMAIL"] = ""
os.environ["ADMIN_PASSWORD"] = ""

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from config.constants import ACCOUNT_COLLECTIONS, APPROVAL_ROLES
from main import create_app
from utils.hash import hash_password
from utils.jwt import create_access_token
from utils.revocation import InMemoryRevocationStore

PASSWORD = "password123"
PASSWORD_HASH = hash_password(PASSWORD)


def run(coro):
    return asyncio.run(coro)


class Seeder:
    """Inserts fixtures straight into the database, bypassing the API."""

    def __init__(self, db):
        self.db = db

    def _insert(self, collection: str, doc: dict) -> dict:
        result = run(self.db[collection].insert_one(doc))
        doc["_id"] = result.inserted_id
        return doc

    def account(self, role: str, **fields) -> dict:
        doc = {
            "name": f"Test {role}",
            "email": f"{role}-{ObjectId()}@example.com",
            "password": PASSWORD_HASH,
            "is_active": True,
            "created_at": datetime.utcnow(),
        }
        if role in APPROVAL_ROLES:
            doc.update({
                "status": "approved",
                "approved_by": ObjectId(),
                "approved_at": datetime.utcnow(),
            })
        doc.update(fields)
        return self._insert(ACCOUNT_COLLECTIONS[role], doc)

    def product(self, seller: dict, **fields) -> dict:
        doc = {
            "name": "Test product",
            "description": "",
            "price": 100.0,
            "discount": 0,
            "instock": True,
            "seller_id": seller["_id"],
            "created_at": datetime.utcnow(),
        }
        doc.update(fields)
        return self._insert("products", doc)

    def order(self, customer: dict, product: dict, **fields) -> dict:
        doc = {
            "customer_id": customer["_id"],
            "product_id": product["_id"],
            "quantity": 1,
            "total_amount": product["price"],
            "status": "pending",
            "created_at": datetime.utcnow(),
        }
        doc.update(fields)
        return self._insert("orders", doc)

    def delivery(self, order: dict, deliverer: dict | None = None, **fields) -> dict:
        doc = {
            "order_id": order["_id"],
            "deliverer_id": deliverer["_id"] if deliverer else None,
            "address": "12 Market Street",
            "status": "pending",
            "delivered_date": None,
            "created_at": datetime.utcnow(),
        }
        doc.update(fields)
        return self._insert("deliveries", doc)

    def review(self, order: dict, **fields) -> dict:
        doc = {
            "customer_id": order["customer_id"],
            "order_id": order["_id"],
            "product_id": order["product_id"],
            "rating": 4,
            "comment": "Good",
            "created_at": datetime.utcnow(),
        }
        doc.update(fields)
        return self._insert("reviews", doc)

    def payment(self, order: dict, **fields) -> dict:
        doc = {
            "customer_id": order["customer_id"],
            "order_id": order["_id"],
            "payment_method": "cash",
            "created_at": datetime.utcnow(),
        }
        doc.update(fields)
        return self._insert("payments", doc)

    def find(self, collection: str, query: dict) -> dict | None:
        return run(self.db[collection].find_one(query))

    def count(self, collection: str, query: dict | None = None) -> int:
        return run(self.db[collection].count_documents(query or {}))


@pytest.fixture
def db():
    return AsyncMongoMockClient()["marketplace_test"]


@pytest.fixture
def revocation_store():
    return InMemoryRevocationStore()


@pytest.fixture
def app(db, revocation_store):
    return create_app(db=db, revocation_store=revocation_store)


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def seed(db) -> Seeder:
    return Seeder(db)


@pytest.fixture
def auth_headers():
    def _headers(account: dict, role: str) -> dict:
        token = create_access_token(account["_id"], role)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def admin(seed):
    return seed.account("admin", name="Root Admin")


@pytest.fixture
def customer(seed):
    return seed.account("customer", phone_no="0123456789", address="1 Main St")


@pytest.fixture
def seller(seed):
    return seed.account("seller", shop_name="Corner Shop", phone_no="0123456789", address="2 Main St")


@pytest.fixture
def deliverer(seed):
    return seed.account("deliverer", phone_no="0123456789")
