from typing import Any, Dict, List, Optional

import structlog
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from pymongo.database import Database

from auth import get_current_user
from database import create_document, get_db, get_documents, next_sequence, now, to_obj_id, update_document
from domain import ORDER_TRANSITIONS, can_transition, format_order_number, price_order
from errors import Forbidden, NotFound, OutOfStock, ValidationFailed
from helpers import load_users, page_envelope, sanitize, user_summary
from schemas import (
    Customization,
    Order as OrderSchema,
    OrderNotes,
    OrderShipping,
    OrderStatus,
    PaymentStatus,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/api/orders", tags=["orders"])

BUYER_ROLES = ("customer", "vendor")


# --------------------- Request models ---------------------

class OrderItemRequest(BaseModel):
    product_id: str
    quantity: int = Field(..., ge=1)
    customizations: List[Customization] = Field(default_factory=list)


class OrderCreate(BaseModel):
    items: List[OrderItemRequest] = Field(..., min_length=1)
    shipping: OrderShipping
    notes: Optional[OrderNotes] = None


class StatusUpdate(BaseModel):
    status: OrderStatus
    note: Optional[str] = None


class PaymentUpdate(BaseModel):
    payment_status: PaymentStatus
    transaction_id: Optional[str] = None
    method: Optional[str] = None


# --------------------- Shaping ---------------------

def _expand(db: Database, order: dict) -> dict:
    item = sanitize(order)
    users = load_users(db, [order.get("customer_id"), order.get("artisan_id")])
    item["customer"] = user_summary(users.get(order.get("customer_id")))
    item["artisan"] = user_summary(users.get(order.get("artisan_id")))

    product_ids = [to_obj_id(i["product_id"]) for i in order.get("items", [])]
    products = {str(p["_id"]): p for p in db["product"].find({"_id": {"$in": product_ids}})}
    for line in item.get("items", []):
        product = products.get(line["product_id"])
        line["product"] = sanitize({k: v for k, v in product.items() if k not in ("reviews", "favorites")}) if product else None
    return item


def _get_or_404(db: Database, order_id: str) -> dict:
    order = db["order"].find_one({"_id": to_obj_id(order_id)})
    if not order:
        raise NotFound("Order not found")
    return order


def _is_party(order: dict, user: dict) -> bool:
    return user["id"] in (order["customer_id"], order["artisan_id"])


# --------------------- Routes ---------------------

@router.post("", status_code=201)
def create_order(body: OrderCreate, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    subtotal = 0.0
    order_items = []
    artisans = []
    # Stock is checked per item without locking; concurrent orders may both pass.
    for item in body.items:
        product = db["product"].find_one({"_id": to_obj_id(item.product_id)})
        if not product:
            raise NotFound(f"Product {item.product_id} not found")
        if not product.get("availability", {}).get("in_stock", True):
            raise OutOfStock(f"Product {product['title']} is out of stock")

        subtotal += product["price"] * item.quantity
        artisans.append(product["artisan_id"])
        order_items.append({
            "product_id": str(product["_id"]),
            "quantity": item.quantity,
            "price": product["price"],
            "customizations": [c.model_dump() for c in item.customizations],
        })

    # The whole order is attributed to the first product's artisan.
    artisan_id = artisans[0]
    if len(set(artisans)) > 1:
        logger.warning("multi_artisan_order", artisan_ids=sorted(set(artisans)), attributed_to=artisan_id)

    order = OrderSchema(
        order_number=format_order_number(next_sequence(db, "order_number")),
        customer_id=current_user["id"],
        artisan_id=artisan_id,
        items=order_items,
        pricing=price_order(subtotal),
        shipping=body.shipping,
        notes=body.notes or OrderNotes(),
        status="pending",
        timeline=[{"status": "pending", "timestamp": now(), "note": "Order created"}],
    )
    order_id = create_document(db, "order", order)
    logger.info("order_created", order_id=order_id, order_number=order.order_number, total=order.pricing.total)
    return _expand(db, db["order"].find_one({"_id": to_obj_id(order_id)}))


@router.get("")
def list_orders(
    status: Optional[OrderStatus] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    query: Dict[str, Any] = {}
    if current_user["role"] in BUYER_ROLES:
        query["customer_id"] = current_user["id"]
    elif current_user["role"] == "artisan":
        query["artisan_id"] = current_user["id"]
    else:
        raise Forbidden()
    if status:
        query["status"] = status

    docs = get_documents(db, "order", query, sort=[("created_at", -1)], skip=(page - 1) * limit, limit=limit)
    orders = [_expand(db, o) for o in docs]
    total = db["order"].count_documents(query)
    return page_envelope("orders", orders, total, page, limit)


@router.get("/{order_id}")
def get_order(order_id: str, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    order = _get_or_404(db, order_id)
    if not _is_party(order, current_user):
        raise Forbidden()
    return _expand(db, order)


@router.put("/{order_id}/status")
def update_order_status(order_id: str, body: StatusUpdate, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    order = _get_or_404(db, order_id)
    if order["artisan_id"] != current_user["id"]:
        raise Forbidden()
    if not can_transition(ORDER_TRANSITIONS, order["status"], body.status):
        raise ValidationFailed(f"Cannot change order status from {order['status']} to {body.status}")

    entry = {"status": body.status, "timestamp": now(), "note": body.note or f"Status updated to {body.status}"}
    updated = update_document(db, "order", order["_id"], {
        "status": body.status,
        "$push": {"timeline": entry},
    })
    logger.info("order_status_changed", order_id=order_id, old=order["status"], new=body.status)
    return _expand(db, updated)


@router.put("/{order_id}/payment")
def update_payment(order_id: str, body: PaymentUpdate, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    order = _get_or_404(db, order_id)
    if not _is_party(order, current_user):
        raise Forbidden()

    update: Dict[str, Any] = {"payment.status": body.payment_status}
    if body.transaction_id:
        update["payment.transaction_id"] = body.transaction_id
    if body.method:
        update["payment.method"] = body.method
    if body.payment_status == "paid":
        update["payment.paid_at"] = now()
    update_document(db, "order", order["_id"], update)
    return {"message": "Payment status updated successfully"}
