import re
from typing import Any, Dict, List, Literal, Optional, Union

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator
from pymongo.database import Database

from ai_client import TextGenerationFailed, TextGenerator, Transcriber, get_text_generator, get_transcriber
from auth import get_current_user, require_role
from database import get_db, now, to_obj_id
from domain import price_stats
from errors import NotFound, ServerError
from helpers import public_user, with_artisans

router = APIRouter(prefix="/api/ai", tags=["ai"])

PRICE_PATTERN = re.compile(r"\$(\d+(?:\.\d{2})?)")

PRICING_SYSTEM_PROMPT = (
    "You are an expert pricing consultant for handmade artisan products. "
    "Provide fair, market-appropriate pricing suggestions with clear reasoning."
)
COPYWRITER_SYSTEM_PROMPT = (
    "You are a creative marketing copywriter specializing in handmade artisan products. "
    "Create engaging, authentic content that tells the story of craftsmanship."
)

CONTENT_TEMPLATES = {
    "social_media": (
        "Create engaging social media posts for this handmade product:\n"
        "Title: {title}\nDescription: {description}\nCategory: {category}\nMaterials: {materials}\n\n"
        "Create 3 different social media posts (Instagram, Facebook, Twitter) that highlight "
        "the craftsmanship and story behind this product."
    ),
    "product_description": (
        "Write compelling product descriptions for this handmade item:\n"
        "Title: {title}\nCurrent Description: {description}\nCategory: {category}\nMaterials: {materials}\n\n"
        "Create 3 different product descriptions that appeal to different customer segments."
    ),
    "marketing_copy": (
        "Create marketing copy for this artisan product:\n"
        "Title: {title}\nDescription: {description}\nCategory: {category}\nMaterials: {materials}\n\n"
        "Generate email marketing copy, website banner text, and promotional content."
    ),
}

RECOMMENDATION_LIMIT = 8
MENTOR_LIMIT = 5


# --------------------- Request models ---------------------

class TranscribeRequest(BaseModel):
    audio_url: str = Field(..., min_length=1)


class PriceRequest(BaseModel):
    title: str
    description: str = ""
    category: str
    materials: List[str] = Field(default_factory=list)
    dimensions: Optional[str] = None
    techniques: List[str] = Field(default_factory=list)
    artisan_experience: Optional[int] = Field(None, ge=0)


class ContentRequest(BaseModel):
    product_title: str
    product_description: str = ""
    category: str = ""
    materials: List[str] = Field(default_factory=list)
    content_type: Literal["social_media", "product_description", "marketing_copy"] = "social_media"


class MentorshipRequest(BaseModel):
    seeker_type: Literal["apprentice", "mentor"]
    specialty: List[str] = Field(..., min_length=1)
    location: Optional[str] = None
    experience_level: Optional[str] = None

    @field_validator("specialty", mode="before")
    @classmethod
    def listify(cls, v: Union[str, List[str]]):
        return [v] if isinstance(v, str) else v


# --------------------- Prompt building ---------------------

def build_price_prompt(req: PriceRequest, stats: Optional[dict]) -> str:
    if stats:
        market = (
            f"- Average similar product price: ${stats['average']:.2f}\n"
            f"- Price range: ${stats['min']:g} - ${stats['max']:g}"
        )
    else:
        market = "- No comparable products found on the marketplace"
    experience = f"{req.artisan_experience} years" if req.artisan_experience is not None else "not provided"
    return (
        "Analyze this handmade product and suggest a fair price:\n\n"
        f"Title: {req.title}\n"
        f"Description: {req.description}\n"
        f"Category: {req.category}\n"
        f"Materials: {', '.join(req.materials)}\n"
        f"Dimensions: {req.dimensions or 'not provided'}\n"
        f"Techniques: {', '.join(req.techniques)}\n"
        f"Artisan Experience: {experience}\n\n"
        f"Market Analysis:\n{market}\n\n"
        "Consider factors like:\n"
        "- Material costs\n- Time investment\n- Skill level\n- Market demand\n- Uniqueness\n\n"
        "Provide a suggested price with reasoning."
    )


def extract_price(text: str) -> Optional[float]:
    match = PRICE_PATTERN.search(text or "")
    return float(match.group(1)) if match else None


# --------------------- Routes ---------------------

@router.post("/transcribe-audio")
def transcribe_audio(
    body: TranscribeRequest,
    current_user: dict = Depends(get_current_user),
    transcriber: Transcriber = Depends(get_transcriber),
):
    text, confidence = transcriber.transcribe(body.audio_url)
    return {"transcription": text, "confidence": confidence}


@router.post("/suggest-price")
def suggest_price(
    body: PriceRequest,
    current_user: dict = Depends(require_role("artisan")),
    db: Database = Depends(get_db),
    generator: TextGenerator = Depends(get_text_generator),
):
    query: Dict[str, Any] = {
        "category": body.category,
        "materials": {"$in": body.materials},
        "is_active": True,
    }
    similar = list(db["product"].find(query, {"price": 1}).limit(10))
    stats = price_stats([p["price"] for p in similar])

    try:
        reasoning = generator.generate(PRICING_SYSTEM_PROMPT, build_price_prompt(body, stats), max_tokens=300)
    except TextGenerationFailed:
        raise ServerError("Server error during price analysis")
    suggested = extract_price(reasoning)
    if suggested is None and stats:
        suggested = stats["average"]

    return {
        "suggested_price": suggested,
        "confidence": 0.85,
        "reasoning": reasoning,
        "market_analysis": {
            "average_price": stats["average"] if stats else None,
            "price_range": {"min": stats["min"], "max": stats["max"]} if stats else None,
            "similar_products": len(similar),
        },
    }


@router.post("/generate-content")
def generate_content(
    body: ContentRequest,
    current_user: dict = Depends(get_current_user),
    generator: TextGenerator = Depends(get_text_generator),
):
    prompt = CONTENT_TEMPLATES[body.content_type].format(
        title=body.product_title,
        description=body.product_description,
        category=body.category,
        materials=", ".join(body.materials),
    )
    try:
        content = generator.generate(COPYWRITER_SYSTEM_PROMPT, prompt, max_tokens=500)
    except TextGenerationFailed:
        raise ServerError("Server error during content generation")
    return {"content": content, "content_type": body.content_type, "generated_at": now()}


@router.get("/recommendations/{user_id}")
def recommendations(user_id: str, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    user = db["user"].find_one({"_id": to_obj_id(user_id)})
    if not user:
        raise NotFound("User not found")

    results: List[dict] = []
    role = user["role"]
    if role == "customer":
        prefs = (user.get("customer_profile") or {}).get("preferences") or {}
        price_range = prefs.get("price_range") or {"min": 0, "max": 1000}
        cursor = db["product"].find({
            "category": {"$in": prefs.get("favorite_categories", [])},
            "price": {"$gte": price_range.get("min", 0), "$lte": price_range.get("max", 1000)},
            "is_active": True,
        }, {"reviews": 0}).sort([("ratings.average", -1), ("views", -1)]).limit(RECOMMENDATION_LIMIT)
        results = with_artisans(db, list(cursor))
    elif role == "vendor":
        preferred = (user.get("vendor_profile") or {}).get("preferred_artisan_types", [])
        cursor = db["user"].find({
            "role": "artisan",
            "artisan_profile.specialties": {"$in": preferred},
            "artisan_profile.ratings.average": {"$gte": 4.0},
            "is_active": True,
        }).limit(RECOMMENDATION_LIMIT)
        results = [public_user(u) for u in cursor]
    elif role == "artisan":
        specialties = (user.get("artisan_profile") or {}).get("specialties", [])
        cursor = db["user"].find({
            "role": "vendor",
            "vendor_profile.preferred_artisan_types": {"$in": specialties},
            "vendor_profile.vendor_rating.average": {"$gte": 4.0},
            "is_active": True,
        }).limit(RECOMMENDATION_LIMIT)
        results = [public_user(u) for u in cursor]

    return {
        "recommendations": results,
        "type": "products" if role == "customer" else "users",
        "generated_at": now(),
    }


@router.post("/mentorship-match")
def mentorship_match(body: MentorshipRequest, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    query: Dict[str, Any] = {
        "role": "artisan",
        "artisan_profile.specialties": {"$in": body.specialty},
        "is_active": True,
    }
    if body.seeker_type == "apprentice":
        query["artisan_profile.experience"] = {"$gte": 5}
        query["artisan_profile.ratings.average"] = {"$gte": 4.5}
    else:
        query["artisan_profile.experience"] = {"$lte": 2}
    query["_id"] = {"$ne": current_user["_id"]}

    matches = [public_user(u) for u in db["user"].find(query).limit(MENTOR_LIMIT)]
    return {
        "matches": matches,
        "seeker_type": body.seeker_type,
        "specialty": body.specialty,
        "generated_at": now(),
    }
