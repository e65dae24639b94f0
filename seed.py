"""
Populate the database with sample artisans, vendors, customers, products and
events for demos and manual testing.

    python seed.py

Existing users, products and events are removed first.
"""
from datetime import datetime, timezone
from typing import Dict, List

import structlog
from pymongo.database import Database

from auth import hash_password
from database import create_document, ensure_indexes, get_db
from schemas import Event, Product, User

logger = structlog.get_logger()

SAMPLE_PASSWORD = "password123"

ARTISANS = [
    {
        "email": "sarah.chen@example.com",
        "profile": {
            "first_name": "Sarah", "last_name": "Chen",
            "bio": "Master potter with 15 years of experience in traditional ceramics",
            "location": {"city": "San Francisco", "state": "CA", "country": "USA"},
            "phone": "+1-555-0123",
            "website": "https://sarahchenpottery.com",
            "social_media": {"instagram": "@sarahchenpottery", "facebook": "SarahChenPottery"},
        },
        "artisan_profile": {
            "story": "I fell in love with pottery during a study abroad program in Japan. The meditative "
                     "process of shaping clay on the wheel became my passion, and I've been creating "
                     "functional art pieces ever since.",
            "specialties": ["pottery", "ceramics", "functional art"],
            "experience": 15,
            "certifications": ["Master Potter Certification", "Traditional Japanese Ceramics"],
            "portfolio": [
                {"title": "Zen Tea Set", "description": "Hand-thrown tea set inspired by Japanese aesthetics",
                 "image_url": "https://images.unsplash.com/photo-1578662996442-48f60103fc96?w=400&h=400&fit=crop",
                 "category": "pottery", "price": 180},
                {"title": "Modern Vase Collection", "description": "Contemporary vases with minimalist design",
                 "image_url": "https://images.unsplash.com/photo-1578662996442-48f60103fc96?w=400&h=400&fit=crop",
                 "category": "pottery", "price": 120},
            ],
            "pricing_preferences": {"hourly_rate": 45, "custom_pricing": True, "bulk_discounts": True},
            "availability": {"is_available": True, "working_hours": "9 AM - 6 PM PST", "timezone": "PST"},
            "ratings": {"average": 4.8, "count": 127},
        },
    },
    {
        "email": "marcus.rodriguez@example.com",
        "profile": {
            "first_name": "Marcus", "last_name": "Rodriguez",
            "bio": "Contemporary jewelry designer specializing in sustainable materials",
            "location": {"city": "Austin", "state": "TX", "country": "USA"},
            "phone": "+1-555-0456",
            "website": "https://marcusrodriguezjewelry.com",
        },
        "artisan_profile": {
            "story": "My journey began with a fascination for the stories that jewelry can tell. I create "
                     "pieces that celebrate both modern design and traditional craftsmanship.",
            "specialties": ["jewelry", "metalwork", "sustainable design"],
            "experience": 8,
            "certifications": ["GIA Graduate Gemologist", "Sustainable Design Certificate"],
            "portfolio": [
                {"title": "Ocean Wave Ring", "description": "Sterling silver ring inspired by ocean waves",
                 "image_url": "https://images.unsplash.com/photo-1515562141207-7a88fb7ce338?w=400&h=400&fit=crop",
                 "category": "jewelry", "price": 95},
                {"title": "Geometric Necklace", "description": "Modern geometric pendant in recycled silver",
                 "image_url": "https://images.unsplash.com/photo-1515562141207-7a88fb7ce338?w=400&h=400&fit=crop",
                 "category": "jewelry", "price": 150},
            ],
            "pricing_preferences": {"hourly_rate": 60, "custom_pricing": True, "bulk_discounts": False},
            "availability": {"is_available": True, "working_hours": "10 AM - 7 PM CST", "timezone": "CST"},
            "ratings": {"average": 4.9, "count": 89},
        },
    },
    {
        "email": "emily.johnson@example.com",
        "profile": {
            "first_name": "Emily", "last_name": "Johnson",
            "bio": "Textile artist creating handwoven scarves and home decor",
            "location": {"city": "Portland", "state": "OR", "country": "USA"},
            "phone": "+1-555-0789",
        },
        "artisan_profile": {
            "story": "I learned traditional weaving techniques from my grandmother and have adapted them to "
                     "create contemporary pieces that honor the past while embracing the future.",
            "specialties": ["textiles", "weaving", "home decor"],
            "experience": 12,
            "certifications": ["Traditional Weaving Master", "Sustainable Textiles"],
            "portfolio": [
                {"title": "Handwoven Scarf", "description": "Silk and wool blend scarf with intricate patterns",
                 "image_url": "https://images.unsplash.com/photo-1586023492125-27b2c045efd7?w=400&h=400&fit=crop",
                 "category": "textiles", "price": 85},
                {"title": "Wall Hanging", "description": "Decorative wall hanging with natural fibers",
                 "image_url": "https://images.unsplash.com/photo-1586023492125-27b2c045efd7?w=400&h=400&fit=crop",
                 "category": "textiles", "price": 120},
            ],
            "pricing_preferences": {"hourly_rate": 35, "custom_pricing": True, "bulk_discounts": True},
            "availability": {"is_available": True, "working_hours": "8 AM - 5 PM PST", "timezone": "PST"},
            "ratings": {"average": 4.7, "count": 156},
        },
    },
]

VENDORS = [
    {
        "email": "retail@craftgallery.com",
        "profile": {
            "first_name": "David", "last_name": "Kim",
            "bio": "Owner of Craft Gallery, specializing in handmade home decor",
            "location": {"city": "Seattle", "state": "WA", "country": "USA"},
            "phone": "+1-555-0321",
            "website": "https://craftgallery.com",
        },
        "vendor_profile": {
            "business_name": "Craft Gallery",
            "business_type": "retailer",
            "tax_id": "TAX123456789",
            "business_license": "BL987654321",
            "preferred_artisan_types": ["pottery", "textiles", "woodwork"],
            "bulk_order_preferences": {
                "min_order_value": 500,
                "preferred_categories": ["home decor", "functional art"],
                "contract_terms": "Net 30 payment terms",
            },
            "vendor_rating": {"average": 4.6, "count": 45},
        },
    },
    {
        "email": "wholesale@modernliving.com",
        "profile": {
            "first_name": "Lisa", "last_name": "Wang",
            "bio": "Wholesale buyer for Modern Living retail chain",
            "location": {"city": "Los Angeles", "state": "CA", "country": "USA"},
            "phone": "+1-555-0654",
        },
        "vendor_profile": {
            "business_name": "Modern Living",
            "business_type": "wholesaler",
            "tax_id": "TAX987654321",
            "business_license": "BL123456789",
            "preferred_artisan_types": ["jewelry", "accessories", "textiles"],
            "bulk_order_preferences": {
                "min_order_value": 1000,
                "preferred_categories": ["jewelry", "accessories"],
                "contract_terms": "Net 45 payment terms",
            },
            "vendor_rating": {"average": 4.8, "count": 78},
        },
    },
]

CUSTOMERS = [
    {
        "email": "customer1@example.com",
        "profile": {
            "first_name": "Jennifer", "last_name": "Smith",
            "bio": "Art lover and collector of handmade pieces",
            "location": {"city": "New York", "state": "NY", "country": "USA"},
        },
        "customer_profile": {
            "preferences": {
                "favorite_categories": ["pottery", "jewelry", "textiles"],
                "price_range": {"min": 50, "max": 500},
            },
        },
    },
    {
        "email": "customer2@example.com",
        "profile": {
            "first_name": "Michael", "last_name": "Brown",
            "bio": "Interior designer seeking unique pieces for clients",
            "location": {"city": "Chicago", "state": "IL", "country": "USA"},
        },
        "customer_profile": {
            "preferences": {
                "favorite_categories": ["home decor", "sculpture", "woodwork"],
                "price_range": {"min": 100, "max": 1000},
            },
        },
    },
]


def _products(artisan_ids: List[str]) -> List[dict]:
    return [
        {
            "artisan_id": artisan_ids[0],
            "title": "Hand-Thrown Ceramic Bowl Set",
            "description": "A beautiful set of three hand-thrown ceramic bowls, each with unique glazing "
                           "patterns. Perfect for everyday use or special occasions.",
            "category": "pottery",
            "subcategory": "functional",
            "images": [{"url": "https://images.unsplash.com/photo-1578662996442-48f60103fc96?w=600&h=600&fit=crop",
                        "alt": "Ceramic bowl set", "is_primary": True}],
            "price": 85,
            "materials": ["stoneware clay", "food-safe glaze"],
            "techniques": ["wheel throwing", "hand glazing"],
            "colors": ["cream", "sage green", "terracotta"],
            "tags": ["functional", "handmade", "ceramic", "bowl"],
            "availability": {
                "in_stock": True, "quantity": 5, "is_customizable": True,
                "custom_options": [{"name": "Glaze Color", "type": "color",
                                    "options": ["cream", "sage green", "terracotta", "navy"]}],
            },
            "shipping": {"shipping_cost": 15, "free_shipping_threshold": 100, "estimated_delivery": "5-7 business days"},
            "ratings": {"average": 4.8, "count": 23, "breakdown": {"five": 18, "four": 4, "three": 1, "two": 0, "one": 0}},
            "views": 156,
            "is_featured": True,
        },
        {
            "artisan_id": artisan_ids[1],
            "title": "Sterling Silver Wave Ring",
            "description": "Elegant sterling silver ring featuring a flowing wave design. Handcrafted with "
                           "attention to detail and comfort.",
            "category": "jewelry",
            "subcategory": "rings",
            "images": [{"url": "https://images.unsplash.com/photo-1515562141207-7a88fb7ce338?w=600&h=600&fit=crop",
                        "alt": "Silver wave ring", "is_primary": True}],
            "price": 125,
            "materials": ["sterling silver"],
            "techniques": ["hand forging", "polishing"],
            "colors": ["silver"],
            "tags": ["jewelry", "ring", "silver", "wave", "handmade"],
            "availability": {
                "in_stock": True, "quantity": 3, "is_customizable": True,
                "custom_options": [{"name": "Ring Size", "type": "size", "options": ["6", "7", "8", "9", "10"]}],
            },
            "shipping": {"shipping_cost": 8, "free_shipping_threshold": 150, "estimated_delivery": "3-5 business days"},
            "ratings": {"average": 4.9, "count": 31, "breakdown": {"five": 28, "four": 3, "three": 0, "two": 0, "one": 0}},
            "views": 203,
            "is_featured": True,
        },
        {
            "artisan_id": artisan_ids[2],
            "title": "Handwoven Silk Scarf",
            "description": "Luxurious handwoven scarf made from pure silk and merino wool blend. Features "
                           "intricate geometric patterns.",
            "category": "textiles",
            "subcategory": "accessories",
            "images": [{"url": "https://images.unsplash.com/photo-1586023492125-27b2c045efd7?w=600&h=600&fit=crop",
                        "alt": "Handwoven silk scarf", "is_primary": True}],
            "price": 95,
            "materials": ["silk", "merino wool"],
            "techniques": ["hand weaving", "hand dyeing"],
            "colors": ["ivory", "gold", "sage"],
            "tags": ["scarf", "silk", "handwoven", "luxury", "accessories"],
            "availability": {"in_stock": True, "quantity": 7},
            "shipping": {"shipping_cost": 12, "free_shipping_threshold": 100, "estimated_delivery": "4-6 business days"},
            "ratings": {"average": 4.7, "count": 19, "breakdown": {"five": 14, "four": 4, "three": 1, "two": 0, "one": 0}},
            "views": 134,
        },
    ]


def _events(artisan_ids: List[str]) -> List[dict]:
    return [
        {
            "title": "Spring Artisan Market",
            "description": "Join us for our annual spring market featuring local artisans, live "
                           "demonstrations, and unique handmade goods.",
            "type": "market",
            "organizer_id": artisan_ids[0],
            "location": {
                "type": "physical",
                "address": {"street": "123 Artisan Way", "city": "San Francisco", "state": "CA",
                            "zip_code": "94102", "country": "USA"},
                "coordinates": {"lat": 37.7749, "lng": -122.4194},
            },
            "schedule": {
                "start_date": datetime(2024, 4, 15, 10, tzinfo=timezone.utc),
                "end_date": datetime(2024, 4, 15, 18, tzinfo=timezone.utc),
                "timezone": "PST",
            },
            "capacity": {"max_attendees": 200},
            "pricing": {"is_free": True},
            "categories": ["pottery", "jewelry", "textiles", "woodwork"],
            "tags": ["market", "spring", "local", "artisan"],
            "images": [{"url": "https://images.unsplash.com/photo-1441986300917-64674bd600d8?w=600&h=400&fit=crop",
                        "alt": "Spring artisan market", "is_primary": True}],
            "requirements": {"skill_level": "all"},
            "featured_artisan_ids": [artisan_ids[0], artisan_ids[1]],
            "status": "published",
            "is_featured": True,
        },
        {
            "title": "Pottery Wheel Workshop",
            "description": "Learn the basics of wheel throwing in this hands-on workshop led by master "
                           "potter Sarah Chen.",
            "type": "workshop",
            "organizer_id": artisan_ids[0],
            "location": {
                "type": "physical",
                "address": {"street": "456 Clay Street", "city": "San Francisco", "state": "CA",
                            "zip_code": "94103", "country": "USA"},
            },
            "schedule": {
                "start_date": datetime(2024, 4, 20, 14, tzinfo=timezone.utc),
                "end_date": datetime(2024, 4, 20, 17, tzinfo=timezone.utc),
                "timezone": "PST",
            },
            "capacity": {"max_attendees": 12},
            "pricing": {"is_free": False, "price": 75},
            "categories": ["pottery"],
            "tags": ["workshop", "pottery", "wheel throwing", "beginner"],
            "images": [{"url": "https://images.unsplash.com/photo-1578662996442-48f60103fc96?w=600&h=400&fit=crop",
                        "alt": "Pottery wheel workshop", "is_primary": True}],
            "requirements": {
                "skill_level": "beginner",
                "materials": ["clay", "tools"],
                "tools": ["pottery wheel", "ribs", "wire tool"],
                "prerequisites": ["No experience required"],
            },
            "featured_artisan_ids": [artisan_ids[0]],
            "status": "published",
        },
    ]


def _create_users(db: Database, role: str, records: List[dict], password_hash: str) -> List[str]:
    return [
        create_document(db, "user", User(role=role, password_hash=password_hash, **record).to_document())
        for record in records
    ]


def seed_database(db: Database) -> Dict[str, int]:
    logger.info("seed_started")
    for name in ("user", "product", "event"):
        db[name].delete_many({})

    password_hash = hash_password(SAMPLE_PASSWORD)
    artisan_ids = _create_users(db, "artisan", ARTISANS, password_hash)
    vendor_ids = _create_users(db, "vendor", VENDORS, password_hash)
    customer_ids = _create_users(db, "customer", CUSTOMERS, password_hash)
    logger.info("users_created", count=len(artisan_ids) + len(vendor_ids) + len(customer_ids))

    product_ids = [create_document(db, "product", Product(**p)) for p in _products(artisan_ids)]
    logger.info("products_created", count=len(product_ids))

    event_ids = [create_document(db, "event", Event(**e)) for e in _events(artisan_ids)]
    logger.info("events_created", count=len(event_ids))

    return {
        "users": len(artisan_ids) + len(vendor_ids) + len(customer_ids),
        "products": len(product_ids),
        "events": len(event_ids),
    }


if __name__ == "__main__":
    database = get_db()
    ensure_indexes(database)
    summary = seed_database(database)
    logger.info("seed_completed", **summary)
    logger.info(
        "test_accounts",
        artisan=f"{ARTISANS[0]['email']} / {SAMPLE_PASSWORD}",
        vendor=f"{VENDORS[0]['email']} / {SAMPLE_PASSWORD}",
        customer=f"{CUSTOMERS[0]['email']} / {SAMPLE_PASSWORD}",
    )
