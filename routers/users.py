from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, field_validator
from pymongo.database import Database

from auth import get_current_user, require_role
from database import get_db, to_obj_id, update_document
from errors import NotFound, ValidationFailed
from helpers import contains, page_envelope, public_user, sort_spec, split_csv
from schemas import (
    ArtisanAvailability,
    BulkOrderPreferences,
    CustomerPreferences,
    PortfolioItem,
    PricingPreferences,
    SocialMedia,
    Location,
)

router = APIRouter(prefix="/api/users", tags=["users"])


# --------------------- Request models ---------------------

class ProfileUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    bio: Optional[str] = Field(None, max_length=500)
    location: Optional[Location] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    social_media: Optional[SocialMedia] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            v = v.strip()
            if not v:
                raise ValueError("must not be empty")
        return v


class ArtisanProfileUpdate(BaseModel):
    story: Optional[str] = None
    audio_story_url: Optional[str] = None
    specialties: Optional[List[str]] = None
    experience: Optional[int] = Field(None, ge=0)
    certifications: Optional[List[str]] = None
    portfolio: Optional[List[PortfolioItem]] = None
    pricing_preferences: Optional[PricingPreferences] = None
    availability: Optional[ArtisanAvailability] = None


class VendorProfileUpdate(BaseModel):
    business_name: Optional[str] = None
    business_type: Optional[str] = None
    tax_id: Optional[str] = None
    business_license: Optional[str] = None
    preferred_artisan_types: Optional[List[str]] = None
    bulk_order_preferences: Optional[BulkOrderPreferences] = None


class CustomerProfileUpdate(BaseModel):
    preferences: Optional[CustomerPreferences] = None
    wishlist: Optional[List[str]] = None


def _section_update(section: str, body: BaseModel) -> Dict[str, Any]:
    fields = body.model_dump(exclude_unset=True, exclude_none=True)
    if not fields:
        raise ValidationFailed("No fields to update")
    return {f"{section}.{k}": v for k, v in fields.items()}


def _apply(db: Database, user: dict, update: Dict[str, Any]) -> dict:
    updated = update_document(db, "user", user["_id"], update)
    return public_user(updated, include_email=True)


# --------------------- Profiles ---------------------

@router.get("/profile/{user_id}")
def get_profile(user_id: str, db: Database = Depends(get_db)):
    user = db["user"].find_one({"_id": to_obj_id(user_id)})
    if not user:
        raise NotFound("User not found")
    return public_user(user)


@router.put("/profile")
def update_profile(body: ProfileUpdate, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    return _apply(db, current_user, _section_update("profile", body))


@router.put("/artisan-profile")
def update_artisan_profile(body: ArtisanProfileUpdate, current_user: dict = Depends(require_role("artisan")), db: Database = Depends(get_db)):
    return _apply(db, current_user, _section_update("artisan_profile", body))


@router.put("/vendor-profile")
def update_vendor_profile(body: VendorProfileUpdate, current_user: dict = Depends(require_role("vendor")), db: Database = Depends(get_db)):
    return _apply(db, current_user, _section_update("vendor_profile", body))


@router.put("/customer-profile")
def update_customer_profile(body: CustomerProfileUpdate, current_user: dict = Depends(require_role("customer")), db: Database = Depends(get_db)):
    return _apply(db, current_user, _section_update("customer_profile", body))


# --------------------- Directories ---------------------

@router.get("/artisans")
def list_artisans(
    specialty: Optional[str] = None,
    location: Optional[str] = None,
    min_rating: Optional[float] = Query(None, alias="minRating"),
    experience: Optional[int] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    sort_by: str = Query("created_at", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),
    db: Database = Depends(get_db),
):
    q: Dict[str, Any] = {"role": "artisan", "is_active": True}
    specialties = split_csv(specialty)
    if specialties:
        q["artisan_profile.specialties"] = {"$in": specialties}
    if location:
        q["profile.location.city"] = contains(location)
    if min_rating is not None:
        q["artisan_profile.ratings.average"] = {"$gte": min_rating}
    if experience is not None:
        q["artisan_profile.experience"] = {"$gte": experience}

    cursor = db["user"].find(q).sort(sort_spec(sort_by, sort_order)).skip((page - 1) * limit).limit(limit)
    artisans = [public_user(u) for u in cursor]
    total = db["user"].count_documents(q)
    return page_envelope("artisans", artisans, total, page, limit)


@router.get("/vendors")
def list_vendors(
    business_type: Optional[str] = Query(None, alias="businessType"),
    location: Optional[str] = None,
    min_rating: Optional[float] = Query(None, alias="minRating"),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    sort_by: str = Query("created_at", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),
    db: Database = Depends(get_db),
):
    q: Dict[str, Any] = {"role": "vendor", "is_active": True}
    if business_type:
        q["vendor_profile.business_type"] = business_type
    if location:
        q["profile.location.city"] = contains(location)
    if min_rating is not None:
        q["vendor_profile.vendor_rating.average"] = {"$gte": min_rating}

    cursor = db["user"].find(q).sort(sort_spec(sort_by, sort_order)).skip((page - 1) * limit).limit(limit)
    vendors = [public_user(u) for u in cursor]
    total = db["user"].count_documents(q)
    return page_envelope("vendors", vendors, total, page, limit)


@router.post("/upload-avatar")
def upload_avatar(current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    # Image storage is not wired in; hand back a placeholder built from the initial.
    initial = (current_user.get("profile", {}).get("first_name") or "?")[0].upper()
    avatar_url = f"https://via.placeholder.com/200x200/8B7355/FFFFFF?text={initial}"
    update_document(db, "user", current_user["_id"], {"profile.avatar": avatar_url})
    return {"avatar_url": avatar_url}
