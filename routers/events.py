from datetime import datetime
from typing import Any, Dict, List, Optional

import structlog
from bson import ObjectId
from fastapi import APIRouter, Body, Depends, Query
from pydantic import BaseModel, Field
from pymongo.database import Database

from auth import get_current_user
from database import create_document, get_db, now, to_obj_id, update_document
from domain import EVENT_TRANSITIONS, can_transition
from errors import ApiError, CapacityExceeded, Conflict, Forbidden, NotFound, ValidationFailed
from helpers import contains, load_users, page_envelope, sanitize, sort_spec, split_csv, user_summary
from schemas import (
    Capacity,
    Event as EventSchema,
    EventLocation,
    EventPricing,
    EventStatus,
    EventType,
    ProductImage,
    Requirements,
    Schedule,
    Sponsor,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/api/events", tags=["events"])


# --------------------- Request models ---------------------

class EventCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    type: EventType
    location: EventLocation
    schedule: Schedule
    capacity: Capacity = Field(default_factory=Capacity)
    pricing: EventPricing = Field(default_factory=EventPricing)
    categories: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    images: List[ProductImage] = Field(default_factory=list)
    requirements: Requirements = Field(default_factory=Requirements)
    featured_artisan_ids: List[str] = Field(default_factory=list)
    sponsors: List[Sponsor] = Field(default_factory=list)
    status: EventStatus = "draft"
    is_featured: bool = False


class EventUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    type: Optional[EventType] = None
    location: Optional[EventLocation] = None
    schedule: Optional[Schedule] = None
    pricing: Optional[EventPricing] = None
    categories: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    images: Optional[List[ProductImage]] = None
    requirements: Optional[Requirements] = None
    featured_artisan_ids: Optional[List[str]] = None
    sponsors: Optional[List[Sponsor]] = None
    status: Optional[EventStatus] = None
    is_featured: Optional[bool] = None
    max_attendees: Optional[int] = Field(None, ge=1)
    is_waitlist: Optional[bool] = None


class RegistrationRequest(BaseModel):
    notes: str = Field("", max_length=500)


# --------------------- Shaping ---------------------

def _expand(db: Database, events: List[dict], with_attendees: bool = False) -> List[dict]:
    ids: List[str] = []
    for e in events:
        ids.append(e.get("organizer_id"))
        ids.extend(e.get("featured_artisan_ids", []))
        if with_attendees:
            ids.extend(a["user_id"] for a in e.get("attendees", []))
    users = load_users(db, ids)

    out = []
    for e in events:
        item = sanitize(e)
        item["organizer"] = user_summary(users.get(e.get("organizer_id")))
        item["featured_artisans"] = [user_summary(users[i]) for i in e.get("featured_artisan_ids", []) if i in users]
        if with_attendees:
            for attendee in item.get("attendees", []):
                attendee["user"] = user_summary(users.get(attendee["user_id"]))
        out.append(item)
    return out


def _get_or_404(db: Database, event_id: str) -> dict:
    event = db["event"].find_one({"_id": to_obj_id(event_id)})
    if not event:
        raise NotFound("Event not found")
    return event


def _registration_problem(event: dict, user_id: str) -> Optional[ApiError]:
    if event["status"] != "published":
        return ValidationFailed("Event is not available for registration")
    attendees = event.get("attendees", [])
    if any(a["user_id"] == user_id for a in attendees):
        return Conflict("You are already registered for this event")
    max_attendees = event.get("capacity", {}).get("max_attendees")
    if max_attendees and len(attendees) >= max_attendees:
        return CapacityExceeded("Event is at full capacity")
    return None


def _sync_attendee_count(db: Database, event_id: ObjectId) -> dict:
    """Set `capacity.current_attendees` from the stored list and return the event."""
    event = db["event"].find_one({"_id": event_id})
    attendees = event.get("attendees", [])
    db["event"].update_one(
        {"_id": event_id, "attendees": {"$size": len(attendees)}},
        {"$set": {"capacity.current_attendees": len(attendees), "updated_at": now()}},
    )
    return db["event"].find_one({"_id": event_id})


# --------------------- Routes ---------------------

@router.get("")
def list_events(
    type: Optional[EventType] = None,
    category: Optional[str] = None,
    location: Optional[str] = None,
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    sort_by: str = Query("schedule.start_date", alias="sortBy"),
    sort_order: str = Query("asc", alias="sortOrder", pattern="^(asc|desc)$"),
    db: Database = Depends(get_db),
):
    query: Dict[str, Any] = {"status": "published"}
    if type:
        query["type"] = type
    if split_csv(category):
        query["categories"] = {"$in": split_csv(category)}
    if location:
        query["location.address.city"] = contains(location)
    if start_date or end_date:
        query["schedule.start_date"] = {}
        if start_date:
            query["schedule.start_date"]["$gte"] = start_date
        if end_date:
            query["schedule.start_date"]["$lte"] = end_date

    cursor = db["event"].find(query).sort(sort_spec(sort_by, sort_order)).skip((page - 1) * limit).limit(limit)
    events = _expand(db, list(cursor))
    total = db["event"].count_documents(query)
    return page_envelope("events", events, total, page, limit)


@router.get("/featured")
def featured_events(db: Database = Depends(get_db)):
    cursor = db["event"].find({
        "is_featured": True,
        "status": "published",
        "schedule.start_date": {"$gte": now()},
    }).sort([("schedule.start_date", 1)]).limit(6)
    return _expand(db, list(cursor))


@router.get("/{event_id}")
def get_event(event_id: str, db: Database = Depends(get_db)):
    return _expand(db, [_get_or_404(db, event_id)], with_attendees=True)[0]


@router.post("", status_code=201)
def create_event(body: EventCreate, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    data = body.model_dump()
    data["capacity"]["current_attendees"] = 0
    event_id = create_document(db, "event", EventSchema(organizer_id=current_user["id"], **data))
    logger.info("event_created", event_id=event_id, organizer_id=current_user["id"])
    return _expand(db, [db["event"].find_one({"_id": to_obj_id(event_id)})])[0]


@router.put("/{event_id}")
def update_event(event_id: str, body: EventUpdate, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    event = _get_or_404(db, event_id)
    if event["organizer_id"] != current_user["id"]:
        raise Forbidden("Not authorized to update this event")

    update = body.model_dump(exclude_unset=True, exclude_none=True)
    new_status = update.get("status")
    if new_status and new_status != event["status"] and not can_transition(EVENT_TRANSITIONS, event["status"], new_status):
        raise ValidationFailed(f"Cannot change event status from {event['status']} to {new_status}")

    if "max_attendees" in update:
        max_attendees = update.pop("max_attendees")
        if max_attendees < len(event.get("attendees", [])):
            raise ValidationFailed("max_attendees cannot be below the current number of attendees")
        update["capacity.max_attendees"] = max_attendees
    if "is_waitlist" in update:
        update["capacity.is_waitlist"] = update.pop("is_waitlist")

    if not update:
        raise ValidationFailed("No fields to update")
    updated = update_document(db, "event", event["_id"], update)
    return _expand(db, [updated])[0]


@router.post("/{event_id}/register")
def register_for_event(
    event_id: str,
    body: Optional[RegistrationRequest] = Body(None),
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    event = _get_or_404(db, event_id)
    user_id = current_user["id"]
    problem = _registration_problem(event, user_id)
    if problem:
        raise problem

    # The filter restates the checks above; the push only lands while they still hold.
    guard: Dict[str, Any] = {"_id": event["_id"], "status": "published", "attendees.user_id": {"$ne": user_id}}
    max_attendees = event.get("capacity", {}).get("max_attendees")
    if max_attendees:
        guard[f"attendees.{max_attendees - 1}"] = {"$exists": False}
    attendee = {
        "user_id": user_id,
        "registered_at": now(),
        "status": "registered",
        "notes": body.notes if body else "",
    }
    pushed = db["event"].update_one(guard, {"$push": {"attendees": attendee}})
    if pushed.matched_count == 0:
        raise _registration_problem(_get_or_404(db, event_id), user_id) or Conflict("Registration could not be completed")

    updated = _sync_attendee_count(db, event["_id"])
    return {
        "message": "Successfully registered for event",
        "event": _expand(db, [updated], with_attendees=True)[0],
    }


@router.delete("/{event_id}/register")
def cancel_registration(event_id: str, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    event = _get_or_404(db, event_id)
    pulled = db["event"].update_one(
        {"_id": event["_id"], "attendees.user_id": current_user["id"]},
        {"$pull": {"attendees": {"user_id": current_user["id"]}}},
    )
    if pulled.matched_count == 0:
        raise NotFound("You are not registered for this event")

    _sync_attendee_count(db, event["_id"])
    return {"message": "Successfully cancelled event registration"}
