import math
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

from bson import ObjectId
from pymongo.database import Database

PUBLIC_USER_FIELDS = ("role", "profile", "artisan_profile", "vendor_profile", "customer_profile",
                      "is_verified", "is_active", "created_at", "updated_at")


def sanitize(doc: Any) -> Any:
    """Make a Mongo document JSON-friendly: `_id` becomes `id`, ObjectIds become strings."""
    if isinstance(doc, list):
        return [sanitize(d) for d in doc]
    if isinstance(doc, ObjectId):
        return str(doc)
    if not isinstance(doc, dict):
        return doc
    d = {}
    for k, v in doc.items():
        if k == "password_hash":
            continue
        if k == "_id":
            d["id"] = str(v)
        else:
            d[k] = sanitize(v)
    return d


def public_user(user: Optional[dict], include_email: bool = False) -> Optional[dict]:
    if not user:
        return None
    out = {"id": str(user["_id"])}
    if include_email:
        out["email"] = user.get("email")
    for field in PUBLIC_USER_FIELDS:
        if field in user:
            out[field] = sanitize(user[field])
    return out


def user_summary(user: Optional[dict]) -> Optional[dict]:
    """The short form used when a user is expanded inside another document."""
    if not user:
        return None
    out = {"id": str(user["_id"]), "role": user.get("role"), "profile": sanitize(user.get("profile"))}
    if user.get("role") == "artisan" and "artisan_profile" in user:
        out["artisan_profile"] = sanitize(user["artisan_profile"])
    return out


def load_users(db: Database, ids: Iterable[str]) -> Dict[str, dict]:
    oids = [ObjectId(i) for i in set(ids) if i and ObjectId.is_valid(i)]
    if not oids:
        return {}
    return {str(u["_id"]): u for u in db["user"].find({"_id": {"$in": oids}})}


def split_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [v.strip() for v in value.split(",") if v.strip()]


def contains(text: str) -> Dict[str, str]:
    """Case-insensitive substring match, with user input escaped."""
    return {"$regex": re.escape(text), "$options": "i"}


def sort_spec(sort_by: str, sort_order: str) -> List[Tuple[str, int]]:
    return [(sort_by, -1 if sort_order == "desc" else 1)]


def page_envelope(key: str, items: List[Any], total: int, page: int, limit: int) -> Dict[str, Any]:
    return {
        key: items,
        "totalPages": math.ceil(total / limit) if limit else 0,
        "currentPage": page,
        "total": total,
    }


def with_artisans(db: Database, products: List[dict]) -> List[dict]:
    """Sanitized products, each carrying an `artisan` summary."""
    users = load_users(db, [p.get("artisan_id") for p in products])
    out = []
    for p in products:
        item = sanitize(p)
        item["artisan"] = user_summary(users.get(p.get("artisan_id")))
        out.append(item)
    return out
