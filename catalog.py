"""
Catalog operations over product documents.

Derived fields (average rating, total stock, discounted price, availability) are
pure functions of a stored document and are recomputed on every read. The
mutating operations take the store explicitly so they can run against any
object that offers the ``CatalogStore`` methods.
"""
import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Mapping, Tuple, Union

from bson import ObjectId

from errors import DuplicateSkuError, NotFoundError
from queries import ProductQuery
from schemas import Product, Review, Variant, validate_product, validate_review, validate_stock, validate_variant

logger = logging.getLogger(__name__)

ACTIVE = "Active"
OUT_OF_STOCK = "Out of Stock"


def _round(value: Union[int, float, Decimal], places: int) -> float:
    exp = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(exp, rounding=ROUND_HALF_UP))


# ---------- Derived fields ----------

def average_rating(product: Mapping[str, Any]) -> float:
    reviews = product.get("reviews") or []
    if not reviews:
        return 0.0
    total = sum(Decimal(r["rating"]) for r in reviews)
    return _round(total / len(reviews), 1)


def total_stock(product: Mapping[str, Any]) -> int:
    return sum(v.get("stock", 0) for v in product.get("variants") or [])


def discounted_price(product: Mapping[str, Any]) -> float:
    """Base price less the percentage discount, rounded to cents."""
    base = product["basePrice"]
    percentage = (product.get("discount") or {}).get("percentage") or 0
    if percentage > 0:
        base_dec = Decimal(str(base))
        return _round(base_dec - base_dec * Decimal(str(percentage)) / 100, 2)
    return float(base)


def is_available(product: Mapping[str, Any]) -> bool:
    return product.get("status") == ACTIVE and total_stock(product) > 0


def compute_derived(product: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "averageRating": average_rating(product),
        "totalStock": total_stock(product),
        "discountedPrice": discounted_price(product),
        "isAvailable": is_available(product),
    }


def apply_stock_invariant(product: Dict[str, Any]) -> Dict[str, Any]:
    """Active products without any stock are saved as "Out of Stock"."""
    if product.get("status") == ACTIVE and total_stock(product) == 0:
        return {**product, "status": OUT_OF_STOCK}
    return product


def find_variant_by_sku(product: Mapping[str, Any], sku: str) -> Dict[str, Any]:
    wanted = sku.strip().upper()
    for variant in product.get("variants") or []:
        if variant.get("sku") == wanted:
            return variant
    raise NotFoundError("Variant not found")


# ---------- Documents ----------

def _embedded(model: Union[Variant, Review]) -> Dict[str, Any]:
    return {"_id": ObjectId(), **model.model_dump(by_alias=True)}


def to_document(product: Product) -> Dict[str, Any]:
    doc = product.model_dump(by_alias=True, exclude={"variants", "reviews"})
    doc["variants"] = [_embedded(v) for v in product.variants]
    doc["reviews"] = [_embedded(r) for r in product.reviews]
    return doc


def present_embedded(sub: Mapping[str, Any]) -> Dict[str, Any]:
    out = {k: v for k, v in sub.items() if k != "_id"}
    if "_id" in sub:
        out = {"id": str(sub["_id"]), **out}
    return out


def present_product(doc: Mapping[str, Any]) -> Dict[str, Any]:
    """JSON-ready view of a stored product with string ids and derived fields."""
    out = {"id": str(doc["_id"])} if "_id" in doc else {}
    for key, value in doc.items():
        if key == "_id":
            continue
        if key in ("variants", "reviews"):
            value = [present_embedded(item) for item in value or []]
        out[key] = value
    out.update(compute_derived(doc))
    return out


# ---------- Operations ----------

def create_product(store, payload: Union[Product, Mapping[str, Any]]) -> Dict[str, Any]:
    product = payload if isinstance(payload, Product) else validate_product(payload)
    conflicts = {
        f"variants.{i}.sku": variant.sku
        for i, variant in enumerate(product.variants)
        if store.sku_exists(variant.sku)
    }
    if conflicts:
        raise DuplicateSkuError(conflicts)
    doc = apply_stock_invariant(to_document(product))
    created = store.insert_product(doc)
    logger.info("Created product %s (%s) with %d variant(s)", created["_id"], product.name, len(product.variants))
    return created


def get_product(store, product_id: ObjectId) -> Dict[str, Any]:
    doc = store.get_product(product_id)
    if doc is None:
        raise NotFoundError("Product not found")
    return doc


def list_products(store, query: ProductQuery) -> List[Dict[str, Any]]:
    return store.find_products(query)


def products_in_category(store, category: str) -> List[Dict[str, Any]]:
    # bypasses ProductQuery validation so unknown categories yield an empty list
    return store.find_products(ProductQuery.model_construct(category=category, status=ACTIVE))


def get_variant(store, product_id: ObjectId, sku: str) -> Tuple[Dict[str, Any], Dict[str, Any], float]:
    product = get_product(store, product_id)
    variant = find_variant_by_sku(product, sku)
    final_price = _round(Decimal(str(product["basePrice"])) + Decimal(str(variant.get("additionalPrice", 0))), 2)
    return product, variant, final_price


def append_variant(store, product_id: ObjectId, payload: Union[Variant, Mapping[str, Any]]) -> Dict[str, Any]:
    """Read-modify-write: concurrent appends to one product may lose an update."""
    variant = payload if isinstance(payload, Variant) else validate_variant(payload)
    product = get_product(store, product_id)
    if store.sku_exists(variant.sku):
        raise DuplicateSkuError({"sku": variant.sku})
    product["variants"] = list(product.get("variants") or []) + [_embedded(variant)]
    saved = store.replace_product(apply_stock_invariant(product))
    logger.info("Added variant %s to product %s", variant.sku, product_id)
    return saved


def append_review(store, product_id: ObjectId, payload: Union[Review, Mapping[str, Any]]) -> Dict[str, Any]:
    review = payload if isinstance(payload, Review) else validate_review(payload)
    product = get_product(store, product_id)
    product["reviews"] = list(product.get("reviews") or []) + [_embedded(review)]
    saved = store.replace_product(apply_stock_invariant(product))
    logger.info("Added review by %s to product %s", review.username, product_id)
    return saved


def update_variant_stock(store, product_id: ObjectId, sku: str, stock: Any) -> Dict[str, Any]:
    new_stock = validate_stock(stock)
    updated = store.set_variant_stock(product_id, sku.strip().upper(), new_stock)
    if updated is None:
        raise NotFoundError("Product or variant not found")
    logger.info("Set stock of %s on product %s to %d", sku.upper(), product_id, new_stock)
    return updated


def _by_count(groups):
    return sorted(groups, key=lambda g: -g["count"])


def statistics(store) -> Dict[str, Any]:
    raw = store.statistics()
    avg_price = raw.get("averagePrice")
    return {
        "totalProducts": raw["totalProducts"],
        "activeProducts": raw["activeProducts"],
        "inactiveProducts": raw["totalProducts"] - raw["activeProducts"],
        "averagePrice": _round(avg_price, 2) if avg_price is not None else 0.0,
        "totalStockAcrossCatalog": raw.get("totalStock") or 0,
        "totalInventoryValue": _round(raw.get("inventoryValue") or 0, 2),
        "categoryDistribution": [{"category": c["_id"], "count": c["count"]} for c in _by_count(raw["byCategory"])],
        "brandDistribution": [{"brand": b["_id"], "count": b["count"]} for b in _by_count(raw["byBrand"])],
        "statusDistribution": [{"status": s["_id"], "count": s["count"]} for s in _by_count(raw["byStatus"])],
    }
