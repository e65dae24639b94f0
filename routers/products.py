from typing import Any, Dict, List, Optional

import structlog
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, field_validator
from pymongo import ReturnDocument
from pymongo.database import Database

from auth import get_current_user, require_role
from database import create_document, get_db, now, to_obj_id, update_document
from domain import summarize_ratings
from errors import Conflict, Forbidden, NotFound
from helpers import contains, load_users, page_envelope, sanitize, sort_spec, split_csv, with_artisans
from schemas import (
    Availability,
    Dimensions,
    Product as ProductSchema,
    ProductCategory,
    ProductImage,
    ProductShipping,
    Weight,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/api/products", tags=["products"])


# --------------------- Request models ---------------------

class ProductCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    category: ProductCategory
    subcategory: Optional[str] = None
    images: List[ProductImage] = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    original_price: Optional[float] = Field(None, ge=0)
    currency: str = "USD"
    dimensions: Dimensions = Field(default_factory=Dimensions)
    weight: Weight = Field(default_factory=Weight)
    materials: List[str] = Field(default_factory=list)
    techniques: List[str] = Field(default_factory=list)
    colors: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    availability: Availability = Field(default_factory=Availability)
    shipping: ProductShipping = Field(default_factory=ProductShipping)

    @field_validator("title", "description")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v


class ProductUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    category: Optional[ProductCategory] = None
    subcategory: Optional[str] = None
    images: Optional[List[ProductImage]] = Field(None, min_length=1)
    price: Optional[float] = Field(None, ge=0)
    original_price: Optional[float] = Field(None, ge=0)
    dimensions: Optional[Dimensions] = None
    weight: Optional[Weight] = None
    materials: Optional[List[str]] = None
    techniques: Optional[List[str]] = None
    colors: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    availability: Optional[Availability] = None
    shipping: Optional[ProductShipping] = None
    is_active: Optional[bool] = None


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=500)
    images: List[str] = Field(default_factory=list)


# --------------------- Shaping ---------------------

def _detail(db: Database, product: dict) -> dict:
    item = with_artisans(db, [product])[0]
    reviewers = load_users(db, [r["user_id"] for r in product.get("reviews", [])])
    for review in item.get("reviews", []):
        reviewer = reviewers.get(review["user_id"])
        review["user"] = {"id": review["user_id"], "profile": sanitize(reviewer.get("profile"))} if reviewer else None
    return item


def _get_or_404(db: Database, product_id: str) -> dict:
    product = db["product"].find_one({"_id": to_obj_id(product_id)})
    if not product:
        raise NotFound("Product not found")
    return product


def _owned_or_403(product: dict, user: dict, action: str) -> None:
    if product["artisan_id"] != user["id"]:
        raise Forbidden(f"Not authorized to {action} this product")


# --------------------- Routes ---------------------

@router.get("")
def list_products(
    category: Optional[str] = None,
    artisan: Optional[str] = None,
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    materials: Optional[str] = None,
    colors: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    sort_by: str = Query("created_at", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),
    db: Database = Depends(get_db),
):
    query: Dict[str, Any] = {"is_active": True}
    if category:
        query["category"] = category
    if artisan:
        query["artisan_id"] = artisan
    if min_price is not None or max_price is not None:
        query["price"] = {}
        if min_price is not None:
            query["price"]["$gte"] = min_price
        if max_price is not None:
            query["price"]["$lte"] = max_price
    if split_csv(materials):
        query["materials"] = {"$in": split_csv(materials)}
    if split_csv(colors):
        query["colors"] = {"$in": split_csv(colors)}
    if search:
        query["$or"] = [
            {"title": contains(search)},
            {"description": contains(search)},
            {"tags": contains(search)},
        ]

    cursor = db["product"].find(query).sort(sort_spec(sort_by, sort_order)).skip((page - 1) * limit).limit(limit)
    products = with_artisans(db, list(cursor))
    total = db["product"].count_documents(query)
    return page_envelope("products", products, total, page, limit)


@router.get("/featured")
def featured_products(db: Database = Depends(get_db)):
    cursor = db["product"].find({"is_featured": True, "is_active": True}).sort([("created_at", -1)]).limit(8)
    return with_artisans(db, list(cursor))


@router.get("/{product_id}")
def get_product(product_id: str, db: Database = Depends(get_db)):
    product = _get_or_404(db, product_id)
    # View counting is best-effort and separate from the read above.
    db["product"].update_one({"_id": product["_id"]}, {"$inc": {"views": 1}})
    return _detail(db, product)


@router.post("", status_code=201)
def create_product(body: ProductCreate, current_user: dict = Depends(require_role("artisan")), db: Database = Depends(get_db)):
    doc = ProductSchema(artisan_id=current_user["id"], **body.model_dump())
    product_id = create_document(db, "product", doc)
    logger.info("product_created", product_id=product_id, artisan_id=current_user["id"])
    return _detail(db, db["product"].find_one({"_id": to_obj_id(product_id)}))


@router.put("/{product_id}")
def update_product(product_id: str, body: ProductUpdate, current_user: dict = Depends(require_role("artisan")), db: Database = Depends(get_db)):
    product = _get_or_404(db, product_id)
    _owned_or_403(product, current_user, "update")
    update = body.model_dump(exclude_unset=True, exclude_none=True)
    updated = update_document(db, "product", product["_id"], update)
    return _detail(db, updated)


@router.delete("/{product_id}")
def delete_product(product_id: str, current_user: dict = Depends(require_role("artisan")), db: Database = Depends(get_db)):
    product = _get_or_404(db, product_id)
    _owned_or_403(product, current_user, "delete")
    db["product"].delete_one({"_id": product["_id"]})
    logger.info("product_deleted", product_id=product_id, artisan_id=current_user["id"])
    return {"message": "Product deleted successfully"}


@router.post("/{product_id}/reviews")
def add_review(product_id: str, body: ReviewCreate, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    product = _get_or_404(db, product_id)
    review = {
        "user_id": current_user["id"],
        "rating": body.rating,
        "comment": body.comment,
        "images": body.images,
        "created_at": now(),
    }
    pushed = db["product"].update_one(
        {"_id": product["_id"], "reviews.user_id": {"$ne": current_user["id"]}},
        {"$push": {"reviews": review}},
    )
    if pushed.matched_count == 0:
        raise Conflict("You have already reviewed this product")

    product = db["product"].find_one({"_id": product["_id"]})
    reviews = product.get("reviews", [])
    # Skipped when another review landed after the read; that request rewrites the ratings.
    db["product"].update_one(
        {"_id": product["_id"], "reviews": {"$size": len(reviews)}},
        {"$set": {"ratings": summarize_ratings(reviews), "updated_at": now()}},
    )
    return _detail(db, db["product"].find_one({"_id": product["_id"]}))


@router.post("/{product_id}/favorite")
def toggle_favorite(product_id: str, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    product = _get_or_404(db, product_id)
    user_id = current_user["id"]
    is_favorited = user_id in product.get("favorites", [])
    op = {"$pull": {"favorites": user_id}} if is_favorited else {"$addToSet": {"favorites": user_id}}
    updated = db["product"].find_one_and_update(
        {"_id": product["_id"]}, op, return_document=ReturnDocument.AFTER
    )
    favorites = updated.get("favorites", [])
    return {"is_favorited": user_id in favorites, "favorites_count": len(favorites)}
