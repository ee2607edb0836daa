"""Sample catalog inserted on startup when SEED_SAMPLE_DATA is set."""
import logging

import catalog

logger = logging.getLogger(__name__)


def _variant(color, size, stock, sku, additional_price=0, weight=None):
    image_key = sku.lower()
    return {
        "color": color,
        "size": size,
        "stock": stock,
        "sku": sku,
        "additionalPrice": additional_price,
        "images": [f"https://example.com/images/{image_key}.jpg"],
        "weight": weight,
    }


SAMPLE_PRODUCTS = [
    {
        "name": "Premium Cotton T-Shirt",
        "description": "Comfortable 100% cotton t-shirt perfect for everyday wear. Pre-shrunk fabric ensures lasting fit.",
        "basePrice": 29.99,
        "category": "Clothing",
        "subcategory": "T-Shirts",
        "brand": "ComfortWear",
        "mainImage": "https://example.com/images/tshirt-main.jpg",
        "additionalImages": ["https://example.com/images/tshirt-back.jpg"],
        "variants": [
            _variant("Black", "M", 50, "TSH-BLK-M-001", weight={"value": 0.2, "unit": "kg"}),
            _variant("Black", "L", 45, "TSH-BLK-L-001", weight={"value": 0.22, "unit": "kg"}),
            _variant("White", "M", 60, "TSH-WHT-M-001", weight={"value": 0.2, "unit": "kg"}),
            _variant("Navy Blue", "L", 30, "TSH-NVY-L-001", 2, {"value": 0.22, "unit": "kg"}),
        ],
        "specifications": {
            "material": "100% Cotton",
            "dimensions": {"length": 70, "width": 50, "height": 1, "unit": "cm"},
            "warranty": "30 days return policy",
            "manufacturer": "ComfortWear Inc.",
            "countryOfOrigin": "India",
        },
        "reviews": [
            {"username": "john_doe", "rating": 5, "comment": "Excellent quality! Fits perfectly."},
            {"username": "sarah_smith", "rating": 4, "comment": "Good shirt, runs slightly small."},
        ],
        "tags": ["cotton", "casual", "comfortable", "basic"],
        "featured": True,
        "discount": {"percentage": 10},
    },
    {
        "name": "Wireless Bluetooth Headphones",
        "description": "Over-ear headphones with active noise cancellation and 30-hour battery life.",
        "basePrice": 199.99,
        "category": "Electronics",
        "subcategory": "Audio",
        "brand": "SoundMaster",
        "mainImage": "https://example.com/images/headphones-main.jpg",
        "variants": [
            _variant("Black", "One Size", 25, "HPH-BLK-OS-001", weight={"value": 250, "unit": "g"}),
            _variant("Silver", "One Size", 15, "HPH-SLV-OS-001", 20, {"value": 250, "unit": "g"}),
            _variant("Rose Gold", "One Size", 10, "HPH-RSG-OS-001", 30, {"value": 250, "unit": "g"}),
        ],
        "specifications": {
            "material": "Aluminum and Leather",
            "dimensions": {"length": 20, "width": 18, "height": 8},
            "warranty": "2 years manufacturer warranty",
            "manufacturer": "SoundMaster Technologies",
            "countryOfOrigin": "Japan",
        },
        "reviews": [
            {"username": "audio_enthusiast", "rating": 5, "comment": "Crystal clear sound."},
            {"username": "music_lover", "rating": 5, "comment": "Battery life is amazing!"},
            {"username": "tech_reviewer", "rating": 4, "comment": "A bit heavy for long sessions."},
        ],
        "tags": ["wireless", "bluetooth", "noise-cancellation", "audio"],
        "featured": True,
        "discount": {"percentage": 15},
    },
    {
        "name": "Running Shoes - Pro Series",
        "description": "Running shoes with advanced cushioning, breathable mesh and grip for all terrains.",
        "basePrice": 89.99,
        "category": "Shoes",
        "subcategory": "Athletic",
        "brand": "RunFast",
        "mainImage": "https://example.com/images/shoes-main.jpg",
        "variants": [
            _variant("Red", "M", 20, "SHO-RED-M-001", weight={"value": 350, "unit": "g"}),
            _variant("Blue", "M", 25, "SHO-BLU-M-001", weight={"value": 350, "unit": "g"}),
            _variant("Black", "L", 30, "SHO-BLK-L-001", 5, {"value": 380, "unit": "g"}),
        ],
        "reviews": [{"username": "marathon_runner", "rating": 5, "comment": "Perfect for long distances."}],
        "tags": ["running", "sports", "athletic"],
    },
    {
        "name": "Stainless Steel Water Bottle",
        "description": "Insulated bottle that keeps drinks cold for 24 hours and hot for 12. BPA-free and leak-proof.",
        "basePrice": 24.99,
        "category": "Home & Kitchen",
        "subcategory": "Drinkware",
        "brand": "EcoHydrate",
        "mainImage": "https://example.com/images/bottle-main.jpg",
        "variants": [
            _variant("Silver", "One Size", 100, "BTL-SLV-OS-001", weight={"value": 300, "unit": "g"}),
            _variant("Matte Black", "One Size", 85, "BTL-BLK-OS-001", 3, {"value": 300, "unit": "g"}),
        ],
        "tags": ["eco-friendly", "insulated", "reusable"],
        "featured": True,
        "discount": {"percentage": 20},
    },
]


def seed_sample_data(store) -> int:
    """Insert every sample product whose SKUs are not in the catalog yet.

    Samples are checked one by one, so a run that stopped part way is
    completed on the next start instead of being skipped.
    """
    inserted = 0
    for product in SAMPLE_PRODUCTS:
        skus = [v["sku"] for v in product["variants"]]
        if any(store.sku_exists(sku) for sku in skus):
            logger.info("Sample product %r already exists", product["name"])
            continue
        catalog.create_product(store, product)
        inserted += 1
    logger.info("Seeded %d sample products, %d in catalog", inserted, store.count_products())
    return inserted
