import logging
from contextlib import asynccontextmanager
from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

import catalog
from config import Settings
from database import CatalogStore
from errors import InfrastructureError, MalformedIdentityError, NotFoundError, ValidationFailed, format_validation_errors
from queries import parse_product_query
from schemas import CATEGORIES, Product, Review, StockUpdate, Variant
from seed import seed_sample_data

settings = Settings.from_env()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    store = CatalogStore(settings.database_url, settings.database_name).connect()
    store.ensure_indexes()
    if settings.seed_sample_data:
        seed_sample_data(store)
    app.state.store = store
    yield
    logger.info("Shutting down")
    store.close()


app = FastAPI(title="E-commerce Catalog API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------- Helpers ----------

def get_store(request: Request) -> CatalogStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise InfrastructureError("Database not configured")
    return store


def oid(id_str: str) -> ObjectId:
    try:
        return ObjectId(id_str)
    except (InvalidId, TypeError):
        raise MalformedIdentityError("Invalid product ID")


def failure(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message, **extra})

# ---------- Error handlers ----------

@app.exception_handler(ValidationFailed)
def on_validation_failed(request: Request, exc: ValidationFailed):
    return failure(400, exc.message, errors=exc.errors)


@app.exception_handler(RequestValidationError)
def on_request_validation(request: Request, exc: RequestValidationError):
    return failure(400, "Validation error", errors=format_validation_errors(exc.errors()))


@app.exception_handler(MalformedIdentityError)
def on_malformed_identity(request: Request, exc: MalformedIdentityError):
    return failure(400, exc.message)


@app.exception_handler(NotFoundError)
def on_not_found(request: Request, exc: NotFoundError):
    return failure(404, exc.message)


@app.exception_handler(StarletteHTTPException)
def on_http_exception(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return failure(404, "Route not found")
    return failure(exc.status_code, str(exc.detail))


@app.exception_handler(InfrastructureError)
@app.exception_handler(PyMongoError)
def on_infrastructure_error(request: Request, exc: Exception):
    logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc)
    return failure(500, "Internal server error", error=str(exc))


@app.exception_handler(Exception)
def on_unexpected(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return failure(500, "Internal server error", error=str(exc))

# ---------- Service description ----------

@app.get("/")
def root():
    return {
        "success": True,
        "message": "E-commerce Catalog API - Nested Document Structure",
        "version": "1.0.0",
        "endpoints": {
            "POST /api/products": "Create a new product",
            "GET /api/products": "Get all products (with filters)",
            "GET /api/products/stats": "Get catalog statistics",
            "GET /api/products/category/{category}": "Get active products in a category",
            "GET /api/products/{id}": "Get product by ID",
            "GET /api/products/{id}/variant/{sku}": "Get specific variant by SKU",
            "POST /api/products/{id}/variants": "Add variant to product",
            "PUT /api/products/{id}/variants/{sku}/stock": "Update variant stock",
            "POST /api/products/{id}/reviews": "Add review to product",
        },
        "availableCategories": CATEGORIES,
        "queryFilters": {
            "category": "Filter by category",
            "brand": "Filter by brand",
            "status": "Filter by status (Active/Inactive/Discontinued/Out of Stock)",
            "featured": "Filter by featured (true/false)",
            "minPrice": "Minimum price filter",
            "maxPrice": "Maximum price filter",
            "search": "Search in product name and description",
            "color": "Filter by variant color",
            "size": "Filter by variant size",
            "inStock": "Only products with a variant in stock (true/false)",
        },
    }


def _configured(field: str) -> str:
    # from_env only passes variables that were present
    return "✅ Set" if field in settings.model_fields_set else "✅ Default"


@app.get("/test")
def test_database(request: Request):
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": _configured("database_url"),
        "database_name": _configured("database_name"),
        "connection_status": "Not Connected",
        "collections": [],
    }
    store = getattr(request.app.state, "store", None)
    if store is None:
        return response
    try:
        info = store.describe()
        response["database"] = "✅ Connected & Working"
        response["connection_status"] = "Connected"
        response["collections"] = info["collections"][:10]
    except (PyMongoError, InfrastructureError) as e:
        response["database"] = f"⚠️  Connected but Error: {str(e)[:50]}"
    return response

# ---------- Products ----------

@app.post("/api/products", status_code=201)
def create_product(product: Product, store: CatalogStore = Depends(get_store)):
    doc = catalog.create_product(store, product)
    return {"success": True, "message": "Product created successfully", "data": catalog.present_product(doc)}


@app.get("/api/products")
def list_products(
    category: Optional[str] = None,
    brand: Optional[str] = None,
    status: Optional[str] = None,
    featured: Optional[bool] = None,
    min_price: Optional[float] = Query(None, alias="minPrice"),
    max_price: Optional[float] = Query(None, alias="maxPrice"),
    search: Optional[str] = None,
    color: Optional[str] = None,
    size: Optional[str] = None,
    in_stock: Optional[bool] = Query(None, alias="inStock"),
    store: CatalogStore = Depends(get_store),
):
    query = parse_product_query(
        category=category,
        brand=brand,
        status=status,
        featured=featured,
        min_price=min_price,
        max_price=max_price,
        search=search,
        color=color,
        size=size,
        in_stock=in_stock,
    )
    products = [catalog.present_product(p) for p in catalog.list_products(store, query)]
    return {"success": True, "count": len(products), "data": products}


@app.get("/api/products/stats")
def product_statistics(store: CatalogStore = Depends(get_store)):
    return {"success": True, "statistics": catalog.statistics(store)}


@app.get("/api/products/category/{category}")
def products_by_category(category: str, store: CatalogStore = Depends(get_store)):
    products = [catalog.present_product(p) for p in catalog.products_in_category(store, category)]
    return {"success": True, "count": len(products), "category": category, "data": products}


@app.get("/api/products/{product_id}")
def get_product(product_id: str, store: CatalogStore = Depends(get_store)):
    doc = catalog.get_product(store, oid(product_id))
    return {"success": True, "data": catalog.present_product(doc)}


@app.get("/api/products/{product_id}/variant/{sku}")
def get_variant(product_id: str, sku: str, store: CatalogStore = Depends(get_store)):
    product, variant, final_price = catalog.get_variant(store, oid(product_id), sku)
    return {
        "success": True,
        "data": {
            "productName": product["name"],
            "basePrice": product["basePrice"],
            "variant": catalog.present_embedded(variant),
            "finalPrice": final_price,
        },
    }


@app.post("/api/products/{product_id}/variants")
def add_variant(product_id: str, variant: Variant, store: CatalogStore = Depends(get_store)):
    doc = catalog.append_variant(store, oid(product_id), variant)
    return {"success": True, "message": "Variant added successfully", "data": catalog.present_product(doc)}


@app.put("/api/products/{product_id}/variants/{sku}/stock")
def update_variant_stock(product_id: str, sku: str, body: StockUpdate, store: CatalogStore = Depends(get_store)):
    doc = catalog.update_variant_stock(store, oid(product_id), sku, body.stock)
    return {"success": True, "message": "Stock updated successfully", "data": catalog.present_product(doc)}


@app.post("/api/products/{product_id}/reviews")
def add_review(product_id: str, review: Review, store: CatalogStore = Depends(get_store)):
    doc = catalog.append_review(store, oid(product_id), review)
    data = catalog.present_product(doc)
    return {
        "success": True,
        "message": "Review added successfully",
        "averageRating": data["averageRating"],
        "data": data,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
