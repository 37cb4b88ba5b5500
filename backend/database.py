from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorClient

from config.env import MONGODB_URI


def connect_db():
    if not MONGODB_URI:
        raise RuntimeError("MONGODB_URI not set")

    client = AsyncIOMotorClient(MONGODB_URI)
    return client.get_default_database()


def get_db(request: Request):
    return request.app.state.db
