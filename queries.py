"""Listing predicates for the product collection."""
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError

from errors import ValidationFailed, format_validation_errors
from schemas import Category, Size, Status


class ProductQuery(BaseModel):
    """Optional filters, AND-combined. ``search`` matches any of its tokens."""
    category: Optional[Category] = None
    brand: Optional[str] = None
    status: Optional[Status] = None
    featured: Optional[bool] = None
    min_price: Optional[float] = Field(None, ge=0)
    max_price: Optional[float] = Field(None, ge=0)
    search: Optional[str] = None
    color: Optional[str] = None
    size: Optional[Size] = None
    in_stock: Optional[bool] = None


def build_product_filter(query: ProductQuery) -> Dict[str, Any]:
    filt: Dict[str, Any] = {}
    if query.category:
        filt["category"] = query.category
    if query.brand:
        filt["brand"] = query.brand
    if query.status:
        filt["status"] = query.status
    if query.featured is not None:
        filt["featured"] = query.featured
    if query.min_price is not None or query.max_price is not None:
        price_filter = {}
        if query.min_price is not None:
            price_filter["$gte"] = query.min_price
        if query.max_price is not None:
            price_filter["$lte"] = query.max_price
        filt["basePrice"] = price_filter
    if query.search and query.search.strip():
        # needs the text index on name + description (CatalogStore.ensure_indexes)
        filt["$text"] = {"$search": query.search.strip()}
    if query.color:
        filt["variants.color"] = query.color
    if query.size:
        filt["variants.size"] = query.size
    if query.in_stock:
        filt["variants.stock"] = {"$gt": 0}
    return filt


def parse_product_query(**values: Any) -> ProductQuery:
    """Build a ``ProductQuery`` from request parameters, dropping unset ones."""
    try:
        return ProductQuery(**{k: v for k, v in values.items() if v is not None})
    except ValidationError as e:
        raise ValidationFailed(format_validation_errors(e.errors())) from e
