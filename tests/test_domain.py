import re

import pytest
from pydantic import ValidationError

from domain import (
    EVENT_TRANSITIONS,
    ORDER_TRANSITIONS,
    can_transition,
    format_order_number,
    price_order,
    price_stats,
    summarize_ratings,
)
from schemas import Profile, User


def test_free_shipping_above_threshold():
    pricing = price_order(120)
    assert pricing["shipping"] == 0
    assert pricing["tax"] == 9.6
    assert pricing["total"] == 129.6
    assert pricing["discount"] == 0


def test_flat_shipping_at_or_below_threshold():
    pricing = price_order(50)
    assert pricing == {"subtotal": 50, "shipping": 15, "tax": 4.0, "discount": 0.0, "total": 69.0}
    assert price_order(100)["shipping"] == 15


def test_total_subtracts_discount():
    pricing = price_order(200, discount=20)
    assert pricing["total"] == pytest.approx(200 + 0 + 16 - 20)


def test_ratings_recomputed_from_reviews():
    reviews = [{"rating": 5}, {"rating": 4}, {"rating": 4}, {"rating": 1}]
    summary = summarize_ratings(reviews)
    assert summary["count"] == 4
    assert summary["average"] == 14 / 4
    assert summary["breakdown"] == {"five": 1, "four": 2, "three": 0, "two": 0, "one": 1}
    assert sum(summary["breakdown"].values()) == summary["count"]


def test_ratings_for_no_reviews():
    assert summarize_ratings([]) == {
        "average": 0,
        "count": 0,
        "breakdown": {"five": 0, "four": 0, "three": 0, "two": 0, "one": 0},
    }


@pytest.mark.parametrize("current,new,allowed", [
    ("pending", "confirmed", True),
    ("pending", "cancelled", True),
    ("confirmed", "refunded", True),
    ("confirmed", "in_production", True),
    ("in_production", "shipped", True),
    ("shipped", "delivered", True),
    ("pending", "shipped", False),
    ("in_production", "cancelled", False),
    ("delivered", "pending", False),
    ("cancelled", "confirmed", False),
])
def test_order_transitions(current, new, allowed):
    assert can_transition(ORDER_TRANSITIONS, current, new) is allowed


def test_event_transitions():
    assert can_transition(EVENT_TRANSITIONS, "draft", "published")
    assert can_transition(EVENT_TRANSITIONS, "published", "completed")
    assert not can_transition(EVENT_TRANSITIONS, "completed", "published")
    assert not can_transition(EVENT_TRANSITIONS, "draft", "completed")


def test_order_number_format():
    assert format_order_number(7, millis=1700000000000) == "ART-1700000000000-0007"
    assert re.fullmatch(r"ART-\d{13}-\d{4}", format_order_number(42))


def test_price_stats():
    assert price_stats([]) is None
    assert price_stats([10, 20, 60]) == {"average": 30, "min": 10, "max": 60}


def test_user_gets_only_its_role_section():
    user = User(email="a@example.com", password_hash="x", role="vendor",
                profile=Profile(first_name="A", last_name="B"))
    doc = user.to_document()
    assert "vendor_profile" in doc
    assert "artisan_profile" not in doc
    assert "customer_profile" not in doc


def test_user_rejects_mismatched_role_section():
    with pytest.raises(ValidationError):
        User(email="a@example.com", password_hash="x", role="customer",
             profile=Profile(first_name="A", last_name="B"),
             artisan_profile={"specialties": ["pottery"]})
