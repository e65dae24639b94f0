"""
Marketplace rules that do not touch the database: rating aggregation,
order pricing, status transition tables and order numbering.
"""
import time
from typing import Dict, Iterable, List, Optional

FREE_SHIPPING_THRESHOLD = 100
FLAT_SHIPPING = 15
TAX_RATE = 0.08

RATING_BUCKETS = {5: "five", 4: "four", 3: "three", 2: "two", 1: "one"}

ORDER_TRANSITIONS: Dict[str, set] = {
    "pending": {"confirmed", "cancelled", "refunded"},
    "confirmed": {"in_production", "cancelled", "refunded"},
    "in_production": {"shipped"},
    "shipped": {"delivered"},
    "delivered": set(),
    "cancelled": set(),
    "refunded": set(),
}

EVENT_TRANSITIONS: Dict[str, set] = {
    "draft": {"published", "cancelled"},
    "published": {"cancelled", "completed"},
    "cancelled": set(),
    "completed": set(),
}


def summarize_ratings(reviews: Iterable[dict]) -> dict:
    """Rebuild a product's rating aggregate from its full review list."""
    ratings = [r["rating"] for r in reviews]
    breakdown = {bucket: 0 for bucket in RATING_BUCKETS.values()}
    for rating in ratings:
        breakdown[RATING_BUCKETS[rating]] += 1
    count = len(ratings)
    return {
        "average": sum(ratings) / count if count else 0,
        "count": count,
        "breakdown": breakdown,
    }


def price_order(subtotal: float, discount: float = 0.0) -> dict:
    # Free shipping strictly above the threshold; flat rate otherwise.
    shipping = 0 if subtotal > FREE_SHIPPING_THRESHOLD else FLAT_SHIPPING
    tax = round(subtotal * TAX_RATE, 2)
    total = round(subtotal + shipping + tax - discount, 2)
    return {
        "subtotal": round(subtotal, 2),
        "shipping": shipping,
        "tax": tax,
        "discount": discount,
        "total": total,
    }


def can_transition(table: Dict[str, set], current: str, new: str) -> bool:
    return new in table.get(current, set())


def format_order_number(sequence: int, millis: Optional[int] = None) -> str:
    if millis is None:
        millis = int(time.time() * 1000)
    return f"ART-{millis}-{sequence:04d}"


def price_stats(prices: List[float]) -> Optional[dict]:
    if not prices:
        return None
    return {
        "average": sum(prices) / len(prices),
        "min": min(prices),
        "max": max(prices),
    }
