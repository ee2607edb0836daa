"""Pytest configuration and shared fixtures."""
import copy
import re
from datetime import datetime, timezone

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

import main
from catalog import ACTIVE, OUT_OF_STOCK, total_stock
from errors import NotFoundError


def _words(text):
    return set(re.findall(r"\w+", text.lower()))


def _matches(doc, query):
    variants = doc.get("variants") or []
    if query.category and doc.get("category") != query.category:
        return False
    if query.brand and doc.get("brand") != query.brand:
        return False
    if query.status and doc.get("status") != query.status:
        return False
    if query.featured is not None and doc.get("featured") != query.featured:
        return False
    if query.min_price is not None and doc["basePrice"] < query.min_price:
        return False
    if query.max_price is not None and doc["basePrice"] > query.max_price:
        return False
    if query.search and query.search.strip():
        words = _words(f"{doc.get('name', '')} {doc.get('description', '')}")
        if not words & _words(query.search):
            return False
    if query.color and not any(v.get("color") == query.color for v in variants):
        return False
    if query.size and not any(v.get("size") == query.size for v in variants):
        return False
    if query.in_stock and not any(v.get("stock", 0) > 0 for v in variants):
        return False
    return True


def _group_count(docs, field):
    counts = {}
    for doc in docs:
        counts[doc.get(field)] = counts.get(doc.get(field), 0) + 1
    return [{"_id": k, "count": v} for k, v in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))]


class InMemoryStore:
    """Dict-backed stand-in for ``CatalogStore`` used by the tests."""

    def __init__(self):
        self.docs = {}
        self._order = {}

    def _copy(self, doc):
        return copy.deepcopy(doc) if doc is not None else None

    def describe(self):
        return {"database_name": "memory", "collections": ["product"] if self.docs else []}

    def get_product(self, product_id):
        return self._copy(self.docs.get(product_id))

    def find_products(self, query):
        found = [d for d in self.docs.values() if _matches(d, query)]
        found.sort(key=lambda d: self._order[d["_id"]], reverse=True)
        return [self._copy(d) for d in found]

    def sku_exists(self, sku):
        return any(v["sku"] == sku for d in self.docs.values() for v in d.get("variants", []))

    def count_products(self):
        return len(self.docs)

    def insert_product(self, doc):
        now = datetime.now(timezone.utc)
        doc = {**copy.deepcopy(doc), "_id": ObjectId(), "createdAt": now, "updatedAt": now}
        self._order[doc["_id"]] = len(self._order)
        self.docs[doc["_id"]] = doc
        return self._copy(doc)

    def replace_product(self, doc):
        if doc["_id"] not in self.docs:
            raise NotFoundError("Product not found")
        doc = {**copy.deepcopy(doc), "updatedAt": datetime.now(timezone.utc)}
        self.docs[doc["_id"]] = doc
        return self._copy(doc)

    def set_variant_stock(self, product_id, sku, stock):
        doc = self.docs.get(product_id)
        if doc is None:
            return None
        for variant in doc["variants"]:
            if variant["sku"] == sku:
                variant["stock"] = stock
                break
        else:
            return None
        if doc["status"] == ACTIVE and total_stock(doc) == 0:
            doc["status"] = OUT_OF_STOCK
        return self._copy(doc)

    def statistics(self):
        docs = list(self.docs.values())
        prices = [d["basePrice"] for d in docs]
        variants = [(d["basePrice"], v) for d in docs for v in d.get("variants", [])]
        return {
            "totalProducts": len(docs),
            "activeProducts": sum(1 for d in docs if d["status"] == ACTIVE),
            "averagePrice": sum(prices) / len(prices) if prices else None,
            "totalStock": sum(v["stock"] for _, v in variants),
            "inventoryValue": sum((base + v.get("additionalPrice", 0)) * v["stock"] for base, v in variants),
            "byCategory": _group_count(docs, "category"),
            "byBrand": _group_count(docs, "brand"),
            "byStatus": _group_count(docs, "status"),
        }


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def client(store):
    main.app.dependency_overrides[main.get_store] = lambda: store
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()


@pytest.fixture
def tshirt_payload():
    return {
        "name": "  Premium Cotton T-Shirt ",
        "description": "Comfortable 100% cotton t-shirt perfect for everyday wear.",
        "basePrice": 29.99,
        "category": "Clothing",
        "subcategory": "T-Shirts",
        "brand": "ComfortWear",
        "mainImage": "https://example.com/images/tshirt-main.jpg",
        "variants": [
            {"color": "Black", "size": "M", "stock": 50, "sku": "tsh-blk-m-001"},
            {"color": "Black", "size": "L", "stock": 45, "sku": "TSH-BLK-L-001"},
            {"color": "White", "size": "M", "stock": 60, "sku": "TSH-WHT-M-001"},
            {"color": "Navy Blue", "size": "L", "stock": 30, "sku": "TSH-NVY-L-001", "additionalPrice": 2},
        ],
        "specifications": {
            "material": "100% Cotton",
            "dimensions": {"length": 70, "width": 50, "height": 1},
            "countryOfOrigin": "India",
        },
        "reviews": [
            {"username": "john_doe", "rating": 5, "comment": "Excellent quality!"},
            {"username": "sarah_smith", "rating": 4},
        ],
        "tags": ["cotton", "casual", "cotton"],
        "featured": True,
        "discount": {"percentage": 10},
    }


@pytest.fixture
def headphones_payload():
    return {
        "name": "Wireless Bluetooth Headphones",
        "description": "Over-ear headphones with active noise cancellation.",
        "basePrice": 199.99,
        "category": "Electronics",
        "brand": "SoundMaster",
        "mainImage": "https://example.com/images/headphones-main.jpg",
        "variants": [
            {"color": "Black", "size": "One Size", "stock": 0, "sku": "HPH-BLK-OS-001"},
            {"color": "Silver", "size": "One Size", "stock": 15, "sku": "HPH-SLV-OS-001", "additionalPrice": 20},
        ],
    }
