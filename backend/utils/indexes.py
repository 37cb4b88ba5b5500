from pymongo import ASCENDING, DESCENDING
from pymongo.errors import OperationFailure

from config.constants import ACCOUNT_COLLECTIONS, APPROVAL_ROLES


def _normalize_key_pairs(keys):
    return [(k, v) for k, v in keys]


async def _create_index_safe(collection, keys, **kwargs):
    """
    Create index safely.
    If Mongo reports IndexOptionsConflict/IndexKeySpecsConflict for same key pattern,
    drop the conflicting index and recreate with desired options.
    """
    desired_key = _normalize_key_pairs(keys)
    desired_name = kwargs.get("name")
    try:
        await collection.create_index(keys, **kwargs)
        return
    except OperationFailure as e:
        if getattr(e, "code", None) not in {85, 86}:
            raise

        conflicting_names = []
        async for idx in collection.list_indexes():
            idx_key = _normalize_key_pairs(list(idx.get("key", {}).items()))
            if idx_key == desired_key:
                idx_name = idx.get("name")
                if idx_name and idx_name != desired_name:
                    conflicting_names.append(idx_name)

        for idx_name in conflicting_names:
            await collection.drop_index(idx_name)

        await collection.create_index(keys, **kwargs)


async def ensure_indexes(db):
    # Accounts: email unique within each account collection
    for role, name in ACCOUNT_COLLECTIONS.items():
        await _create_index_safe(
            db[name],
            [("email", ASCENDING)],
            name=f"{name}_email_unique_idx",
            unique=True,
        )
        if role in APPROVAL_ROLES:
            await _create_index_safe(
                db[name],
                [("status", ASCENDING), ("created_at", DESCENDING)],
                name=f"{name}_status_created_idx",
            )

    # Products
    await _create_index_safe(
        db.products,
        [("seller_id", ASCENDING), ("created_at", DESCENDING)],
        name="products_seller_created_idx",
    )

    # Orders
    await _create_index_safe(
        db.orders,
        [("customer_id", ASCENDING), ("created_at", DESCENDING)],
        name="orders_customer_created_at_idx",
    )
    await _create_index_safe(
        db.orders,
        [("product_id", ASCENDING)],
        name="orders_product_idx",
    )

    # Deliveries
    await _create_index_safe(
        db.deliveries,
        [("order_id", ASCENDING)],
        name="deliveries_order_idx",
    )
    await _create_index_safe(
        db.deliveries,
        [("deliverer_id", ASCENDING), ("created_at", DESCENDING)],
        name="deliveries_deliverer_created_idx",
    )

    # Reviews: one per order
    await _create_index_safe(
        db.reviews,
        [("order_id", ASCENDING)],
        name="reviews_order_unique_idx",
        unique=True,
    )
    await _create_index_safe(
        db.reviews,
        [("product_id", ASCENDING), ("created_at", DESCENDING)],
        name="reviews_product_created_idx",
    )

    # Payments: one per order
    await _create_index_safe(
        db.payments,
        [("order_id", ASCENDING)],
        name="payments_order_unique_idx",
        unique=True,
    )

    # Revoked tokens: pruned by Mongo once the token would have expired anyway
    await _create_index_safe(
        db.revoked_tokens,
        [("token", ASCENDING)],
        name="revoked_tokens_token_unique_idx",
        unique=True,
    )
    await _create_index_safe(
        db.revoked_tokens,
        [("expires_at", ASCENDING)],
        name="revoked_tokens_ttl_idx",
        expireAfterSeconds=0,
    )
