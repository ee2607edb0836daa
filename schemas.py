"""
Database Schemas for the Product Catalog

Each Pydantic model describes a document (or an embedded sub-document) in the
MongoDB "product" collection. Field names are snake_case in Python and camelCase
on the wire and in the stored document (e.g. base_price -> "basePrice").

Variants, reviews and specifications live inside their product document and
have no existence outside of it.
"""
from datetime import datetime, timezone
from typing import Any, List, Literal, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from errors import ValidationFailed, format_validation_errors

# ---------- Enumerations ----------

Currency = Literal["USD", "EUR", "GBP", "INR", "JPY"]
Category = Literal[
    "Electronics",
    "Clothing",
    "Shoes",
    "Accessories",
    "Home & Kitchen",
    "Sports & Outdoors",
    "Books",
    "Toys & Games",
    "Beauty & Personal Care",
    "Automotive",
    "Other",
]
Size = Literal["XS", "S", "M", "L", "XL", "XXL", "One Size", "Custom"]
Status = Literal["Active", "Inactive", "Discontinued", "Out of Stock"]
WeightUnit = Literal["g", "kg", "lb", "oz"]
DimensionUnit = Literal["cm", "m", "in", "ft"]

CATEGORIES: List[str] = list(Category.__args__)


class CatalogModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# ---------- Embedded documents ----------

class Weight(CatalogModel):
    value: Optional[float] = None
    unit: WeightUnit = "kg"


class Variant(CatalogModel):
    color: str = Field(..., min_length=1, description="Variant color")
    size: Size
    stock: int = Field(0, ge=0, description="Units on hand")
    sku: str = Field(..., min_length=1, description="Catalog-wide unique SKU, stored upper-cased")
    additional_price: float = Field(0, ge=0, description="Added to the product base price")
    images: List[str] = Field(default_factory=list)
    weight: Optional[Weight] = None

    @field_validator("sku")
    @classmethod
    def _upper_sku(cls, v: str) -> str:
        return v.upper()


class Review(CatalogModel):
    username: str = Field(..., min_length=1)
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=500)
    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Dimensions(CatalogModel):
    length: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    unit: DimensionUnit = "cm"


class Specification(CatalogModel):
    material: Optional[str] = None
    dimensions: Optional[Dimensions] = None
    warranty: Optional[str] = None
    manufacturer: Optional[str] = None
    country_of_origin: Optional[str] = None


class Discount(CatalogModel):
    percentage: float = Field(0, ge=0, le=100)
    valid_until: Optional[datetime] = None


# ---------- Root document ----------

class Product(CatalogModel):
    """
    Products collection schema
    Collection: "product"
    """
    name: str = Field(..., min_length=3, max_length=200, description="Product name")
    description: str = Field(..., min_length=1, max_length=2000)
    base_price: float = Field(..., ge=0)
    currency: Currency = "USD"
    category: Category
    subcategory: Optional[str] = None
    brand: str = Field(..., min_length=1)
    variants: List[Variant] = Field(default_factory=list, validate_default=True)
    specifications: Optional[Specification] = None
    reviews: List[Review] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    main_image: str = Field(..., min_length=1, description="Main image URL")
    additional_images: List[str] = Field(default_factory=list)
    status: Status = "Active"
    featured: bool = False
    discount: Discount = Field(default_factory=Discount)

    @field_validator("variants")
    @classmethod
    def _at_least_one_variant(cls, v: List[Variant]) -> List[Variant]:
        if not v:
            raise ValueError("Product must have at least one variant")
        seen = set()
        for variant in v:
            if variant.sku in seen:
                raise ValueError(f"Duplicate SKU '{variant.sku}' in variants")
            seen.add(variant.sku)
        return v

    @field_validator("tags")
    @classmethod
    def _unique_tags(cls, v: List[str]) -> List[str]:
        return list(dict.fromkeys(t for t in v if t))


# ---------- Request bodies ----------

class StockUpdate(CatalogModel):
    stock: int = Field(..., ge=0)


# ---------- Validation entry points ----------

M = TypeVar("M", bound=BaseModel)


def _validate(model: Type[M], data: Any) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ValidationFailed(format_validation_errors(e.errors())) from e


def validate_product(data: Any) -> Product:
    """Validate and normalize a product payload, reporting every violation at once."""
    return _validate(Product, data)


def validate_variant(data: Any) -> Variant:
    return _validate(Variant, data)


def validate_review(data: Any) -> Review:
    return _validate(Review, data)


def validate_stock(value: Any) -> int:
    return _validate(StockUpdate, {"stock": value}).stock
