"""
MongoDB store for the product catalog.

``CatalogStore`` is the handle every component receives explicitly; there is no
module-level connection. ``connect`` opens the client and checks the server,
``close`` releases it.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, TEXT, MongoClient, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from catalog import ACTIVE, OUT_OF_STOCK, total_stock
from errors import DuplicateSkuError, InfrastructureError, NotFoundError
from queries import ProductQuery, build_product_filter

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _duplicate_sku(e: DuplicateKeyError) -> str:
    key_value = (e.details or {}).get("keyValue") or {}
    return str(key_value.get("variants.sku", "unknown"))


class CatalogStore:
    collection_name = "product"

    def __init__(self, url: str, name: str, client: Optional[MongoClient] = None):
        self.url = url
        self.name = name
        self.client = client
        self.db = client[name] if client is not None else None

    def connect(self, timeout_ms: int = 5000) -> "CatalogStore":
        if self.client is None:
            self.client = MongoClient(self.url, serverSelectionTimeoutMS=timeout_ms, tz_aware=True)
        try:
            self.client.admin.command("ping")
        except PyMongoError as e:
            raise InfrastructureError(f"Could not connect to MongoDB: {e}") from e
        self.db = self.client[self.name]
        logger.info("Connected to MongoDB database %s", self.name)
        return self

    def close(self) -> None:
        if self.client is not None:
            self.client.close()
            logger.info("MongoDB connection closed")
        self.client = None
        self.db = None

    @property
    def collection(self):
        if self.db is None:
            raise InfrastructureError("Database not configured")
        return self.db[self.collection_name]

    def ensure_indexes(self) -> None:
        col = self.collection
        col.create_index([("name", TEXT), ("description", TEXT)], name="name_description_text")
        col.create_index([("category", ASCENDING), ("brand", ASCENDING)])
        # unique across documents only; duplicates inside one product are caught by validation
        col.create_index("variants.sku", unique=True)
        col.create_index("status")
        logger.info("Indexes ensured on %s", self.collection_name)

    def describe(self) -> Dict[str, Any]:
        return {"database_name": self.name, "collections": self.collection.database.list_collection_names()}

    # ---------- Reads ----------

    def get_product(self, product_id: ObjectId) -> Optional[Dict[str, Any]]:
        return self.collection.find_one({"_id": product_id})

    def find_products(self, query: ProductQuery) -> List[Dict[str, Any]]:
        cursor = self.collection.find(build_product_filter(query)).sort("createdAt", DESCENDING)
        return list(cursor)

    def sku_exists(self, sku: str) -> bool:
        return self.collection.count_documents({"variants.sku": sku}, limit=1) > 0

    def count_products(self) -> int:
        return self.collection.count_documents({})

    # ---------- Writes ----------

    def insert_product(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        now = _now()
        doc = {**doc, "createdAt": now, "updatedAt": now}
        try:
            result = self.collection.insert_one(doc)
        except DuplicateKeyError as e:
            raise DuplicateSkuError({"variants.sku": _duplicate_sku(e)}) from e
        doc["_id"] = result.inserted_id
        return doc

    def replace_product(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        doc = {**doc, "updatedAt": _now()}
        try:
            result = self.collection.replace_one({"_id": doc["_id"]}, doc)
        except DuplicateKeyError as e:
            raise DuplicateSkuError({"variants.sku": _duplicate_sku(e)}) from e
        if result.matched_count == 0:
            raise NotFoundError("Product not found")
        return doc

    def set_variant_stock(self, product_id: ObjectId, sku: str, stock: int) -> Optional[Dict[str, Any]]:
        """Atomic positional update of one variant's stock, then the out-of-stock fix-up."""
        updated = self.collection.find_one_and_update(
            {"_id": product_id, "variants.sku": sku},
            {"$set": {"variants.$.stock": stock, "updatedAt": _now()}},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            return None
        if updated.get("status") == ACTIVE and total_stock(updated) == 0:
            coerced = self.collection.find_one_and_update(
                {"_id": product_id, "status": ACTIVE, "variants.stock": {"$not": {"$gt": 0}}},
                {"$set": {"status": OUT_OF_STOCK}},
                return_document=ReturnDocument.AFTER,
            )
            if coerced is not None:
                updated = coerced
        return updated

    # ---------- Aggregates ----------

    def _group_count(self, field: str) -> List[Dict[str, Any]]:
        return list(self.collection.aggregate([
            {"$group": {"_id": f"${field}", "count": {"$sum": 1}}},
            {"$sort": {"count": -1, "_id": 1}},
        ]))

    def statistics(self) -> Dict[str, Any]:
        col = self.collection
        avg = list(col.aggregate([{"$group": {"_id": None, "avgPrice": {"$avg": "$basePrice"}}}]))
        stock = list(col.aggregate([
            {"$unwind": "$variants"},
            {"$group": {
                "_id": None,
                "totalStock": {"$sum": "$variants.stock"},
                "inventoryValue": {"$sum": {"$multiply": [
                    {"$add": ["$basePrice", {"$ifNull": ["$variants.additionalPrice", 0]}]},
                    "$variants.stock",
                ]}},
            }},
        ]))
        return {
            "totalProducts": col.count_documents({}),
            "activeProducts": col.count_documents({"status": ACTIVE}),
            "averagePrice": avg[0]["avgPrice"] if avg else None,
            "totalStock": stock[0]["totalStock"] if stock else 0,
            "inventoryValue": stock[0]["inventoryValue"] if stock else 0,
            "byCategory": self._group_count("category"),
            "byBrand": self._group_count("brand"),
            "byStatus": self._group_count("status"),
        }
