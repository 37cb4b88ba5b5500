"""
Revocation store for bearer tokens invalidated before their natural expiry
(logout). Entries carry the token's own expiry so they can be pruned once the
token would be rejected anyway.

Two backends:

- ``InMemoryRevocationStore``: single process, lock-guarded.
- ``MongoRevocationStore``: shared ``revoked_tokens`` collection with a TTL
  index on ``expires_at`` (see ``utils.indexes``), for multi-instance
  deployments.
"""

import threading
from datetime import datetime
from typing import Dict, Optional, Protocol

from pymongo.errors import DuplicateKeyError


class RevocationStore(Protocol):
    async def add(self, token: str, expires_at: Optional[datetime] = None) -> None:
        ...

    async def contains(self, token: str) -> bool:
        ...


class InMemoryRevocationStore:

    def __init__(self):
        self._lock = threading.Lock()
        self._tokens: Dict[str, Optional[datetime]] = {}

    def _prune(self, now: datetime):
        expired = [
            token for token, expires_at in self._tokens.items()
            if expires_at is not None and expires_at <= now
        ]
        for token in expired:
            del self._tokens[token]

    async def add(self, token: str, expires_at: Optional[datetime] = None) -> None:
        with self._lock:
            self._prune(datetime.utcnow())
            self._tokens[token] = expires_at

    async def contains(self, token: str) -> bool:
        with self._lock:
            return token in self._tokens

    def __len__(self):
        with self._lock:
            return len(self._tokens)


class MongoRevocationStore:

    def __init__(self, db):
        self.collection = db.revoked_tokens

    async def add(self, token: str, expires_at: Optional[datetime] = None) -> None:
        try:
            await self.collection.update_one(
                {"token": token},
                {"$setOnInsert": {
                    "token": token,
                    "expires_at": expires_at,
                    "revoked_at": datetime.utcnow(),
                }},
                upsert=True,
            )
        except DuplicateKeyError:
            # concurrent logout with the same token
            pass

    async def contains(self, token: str) -> bool:
        doc = await self.collection.find_one({"token": token}, {"_id": 1})
        return doc is not None


def build_revocation_store(backend: str, db=None) -> RevocationStore:
    if backend == "mongo":
        if db is None:
            raise RuntimeError("Mongo revocation store needs a database")
        return MongoRevocationStore(db)

    if backend == "memory":
        return InMemoryRevocationStore()

    raise RuntimeError(f"Unknown revocation backend: {backend}")
