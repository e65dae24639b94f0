"""
Database Schemas for Artizone

Each Pydantic model represents a MongoDB collection. The collection name is the
lowercase of the class name (User -> "user", Product -> "product", ...).

We will use these collections:
- user: artisans, vendors and customers
- product: handmade listings with embedded reviews
- event: markets, workshops and exhibitions with embedded attendees
- order: purchases with a pricing breakdown and a status timeline
- counter: atomic sequences (order numbers)
"""
from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

Role = Literal["artisan", "vendor", "customer"]

ProductCategory = Literal[
    "pottery", "jewelry", "textiles", "woodwork", "metalwork",
    "glass", "leather", "ceramics", "sculpture", "other",
]

EventType = Literal["exhibition", "workshop", "market", "competition", "networking", "online"]
EventStatus = Literal["draft", "published", "cancelled", "completed"]
LocationType = Literal["physical", "online", "hybrid"]
AttendeeStatus = Literal["registered", "attended", "cancelled"]

OrderStatus = Literal["pending", "confirmed", "in_production", "shipped", "delivered", "cancelled", "refunded"]
PaymentStatus = Literal["pending", "paid", "failed", "refunded"]


# --------------------- User ---------------------

class Coordinates(BaseModel):
    lat: Optional[float] = None
    lng: Optional[float] = None


class Location(BaseModel):
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    coordinates: Optional[Coordinates] = None


class SocialMedia(BaseModel):
    instagram: Optional[str] = None
    facebook: Optional[str] = None
    twitter: Optional[str] = None


class Profile(BaseModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    avatar: Optional[str] = None
    bio: Optional[str] = Field(None, max_length=500)
    location: Location = Field(default_factory=Location)
    phone: Optional[str] = None
    website: Optional[str] = None
    social_media: SocialMedia = Field(default_factory=SocialMedia)


class RatingSummary(BaseModel):
    average: float = 0
    count: int = 0


class PortfolioItem(BaseModel):
    title: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    is_available: bool = True


class PricingPreferences(BaseModel):
    hourly_rate: Optional[float] = Field(None, ge=0)
    custom_pricing: bool = False
    bulk_discounts: bool = False


class ArtisanAvailability(BaseModel):
    is_available: bool = True
    working_hours: Optional[str] = None
    timezone: Optional[str] = None


class ArtisanProfile(BaseModel):
    story: Optional[str] = Field(None, description="Artisan story, possibly transcribed from audio")
    audio_story_url: Optional[str] = None
    specialties: List[str] = Field(default_factory=list)
    experience: int = Field(0, ge=0, description="Years of experience")
    certifications: List[str] = Field(default_factory=list)
    portfolio: List[PortfolioItem] = Field(default_factory=list)
    pricing_preferences: PricingPreferences = Field(default_factory=PricingPreferences)
    availability: ArtisanAvailability = Field(default_factory=ArtisanAvailability)
    ratings: RatingSummary = Field(default_factory=RatingSummary)


class BulkOrderPreferences(BaseModel):
    min_order_value: Optional[float] = Field(None, ge=0)
    preferred_categories: List[str] = Field(default_factory=list)
    contract_terms: Optional[str] = None


class VendorProfile(BaseModel):
    business_name: Optional[str] = None
    business_type: Optional[str] = Field(None, description="retailer | wholesaler | distributor")
    tax_id: Optional[str] = None
    business_license: Optional[str] = None
    preferred_artisan_types: List[str] = Field(default_factory=list)
    bulk_order_preferences: BulkOrderPreferences = Field(default_factory=BulkOrderPreferences)
    vendor_rating: RatingSummary = Field(default_factory=RatingSummary)


class PriceRange(BaseModel):
    min: float = Field(0, ge=0)
    max: float = Field(1000, ge=0)


class CustomerPreferences(BaseModel):
    favorite_categories: List[str] = Field(default_factory=list)
    price_range: PriceRange = Field(default_factory=PriceRange)
    preferred_artisans: List[str] = Field(default_factory=list)


class CustomerProfile(BaseModel):
    preferences: CustomerPreferences = Field(default_factory=CustomerPreferences)
    wishlist: List[str] = Field(default_factory=list, description="Product ids")
    order_history: List[str] = Field(default_factory=list, description="Order ids")


ROLE_PROFILE_FIELDS = {
    "artisan": "artisan_profile",
    "vendor": "vendor_profile",
    "customer": "customer_profile",
}

ROLE_PROFILE_MODELS = {
    "artisan": ArtisanProfile,
    "vendor": VendorProfile,
    "customer": CustomerProfile,
}


class User(BaseModel):
    """
    Users collection schema
    Collection name: "user"

    The role-specific section is a variant keyed by `role`: only the section
    named after the role is present.
    """
    email: EmailStr
    password_hash: str = Field(..., description="BCrypt hash of password")
    role: Role
    profile: Profile
    artisan_profile: Optional[ArtisanProfile] = None
    vendor_profile: Optional[VendorProfile] = None
    customer_profile: Optional[CustomerProfile] = None
    is_verified: bool = False
    is_active: bool = True
    last_login: Optional[datetime] = None

    @model_validator(mode="after")
    def role_profile_matches_role(self):
        for role, field in ROLE_PROFILE_FIELDS.items():
            present = getattr(self, field) is not None
            if role == self.role and not present:
                setattr(self, field, ROLE_PROFILE_MODELS[role]())
            elif role != self.role and present:
                raise ValueError(f"{field} is only allowed for {role} users")
        return self

    def to_document(self) -> dict:
        other_sections = {f for r, f in ROLE_PROFILE_FIELDS.items() if r != self.role}
        return self.model_dump(exclude=other_sections)


# --------------------- Product ---------------------

class ProductImage(BaseModel):
    url: str = Field(..., min_length=1)
    alt: Optional[str] = None
    is_primary: bool = False


class Dimensions(BaseModel):
    length: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    unit: str = "cm"


class Weight(BaseModel):
    value: Optional[float] = None
    unit: str = "g"


class CustomOption(BaseModel):
    name: str
    type: Literal["text", "color", "size", "material"]
    options: List[str] = Field(default_factory=list)
    price_modifier: float = 0


class Availability(BaseModel):
    in_stock: bool = True
    quantity: int = Field(1, ge=0)
    is_customizable: bool = False
    custom_options: List[CustomOption] = Field(default_factory=list)


class ProductShipping(BaseModel):
    weight: Optional[float] = None
    shipping_cost: Optional[float] = Field(None, ge=0)
    free_shipping_threshold: Optional[float] = Field(None, ge=0)
    estimated_delivery: Optional[str] = None
    shipping_restrictions: List[str] = Field(default_factory=list)


class RatingBreakdown(BaseModel):
    five: int = 0
    four: int = 0
    three: int = 0
    two: int = 0
    one: int = 0


class ProductRatings(BaseModel):
    average: float = 0
    count: int = 0
    breakdown: RatingBreakdown = Field(default_factory=RatingBreakdown)


class Review(BaseModel):
    user_id: str
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=500)
    images: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None


class Product(BaseModel):
    """
    Products collection schema
    Collection name: "product"
    """
    artisan_id: str = Field(..., description="Owning artisan user id")
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    category: ProductCategory
    subcategory: Optional[str] = None
    images: List[ProductImage] = Field(..., min_length=1)
    price: float = Field(..., ge=0, description="Price in dollars")
    original_price: Optional[float] = Field(None, ge=0, description="Original price for discounts")
    currency: str = "USD"
    dimensions: Dimensions = Field(default_factory=Dimensions)
    weight: Weight = Field(default_factory=Weight)
    materials: List[str] = Field(default_factory=list)
    techniques: List[str] = Field(default_factory=list)
    colors: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    availability: Availability = Field(default_factory=Availability)
    shipping: ProductShipping = Field(default_factory=ProductShipping)
    ratings: ProductRatings = Field(default_factory=ProductRatings)
    reviews: List[Review] = Field(default_factory=list)
    views: int = 0
    favorites: List[str] = Field(default_factory=list, description="User ids")
    is_featured: bool = False
    is_active: bool = True


# --------------------- Event ---------------------

class Address(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None


class EventLocation(BaseModel):
    type: LocationType = "physical"
    address: Address = Field(default_factory=Address)
    coordinates: Optional[Coordinates] = None
    online_link: Optional[str] = None
    platform: Optional[str] = Field(None, description="zoom | google_meet | custom")


class Recurrence(BaseModel):
    is_recurring: bool = False
    frequency: Optional[Literal["daily", "weekly", "monthly", "yearly"]] = None
    interval: Optional[int] = Field(None, ge=1)
    end_date: Optional[datetime] = None


class Schedule(BaseModel):
    start_date: datetime
    end_date: datetime
    timezone: str = "UTC"
    duration: Optional[int] = Field(None, ge=0, description="Minutes")
    recurring: Recurrence = Field(default_factory=Recurrence)

    @field_validator("start_date", "end_date")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @model_validator(mode="after")
    def end_after_start(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class Capacity(BaseModel):
    max_attendees: Optional[int] = Field(None, ge=1)
    current_attendees: int = 0
    is_waitlist: bool = False


class GroupDiscount(BaseModel):
    min_group_size: int = Field(..., ge=2)
    discount_percentage: float = Field(..., ge=0, le=100)


class EventPricing(BaseModel):
    is_free: bool = False
    price: Optional[float] = Field(None, ge=0)
    currency: str = "USD"
    early_bird_price: Optional[float] = Field(None, ge=0)
    early_bird_end_date: Optional[datetime] = None
    group_discounts: List[GroupDiscount] = Field(default_factory=list)


class Requirements(BaseModel):
    skill_level: Optional[Literal["beginner", "intermediate", "advanced", "all"]] = None
    materials: List[str] = Field(default_factory=list)
    tools: List[str] = Field(default_factory=list)
    prerequisites: List[str] = Field(default_factory=list)


class Attendee(BaseModel):
    user_id: str
    registered_at: Optional[datetime] = None
    status: AttendeeStatus = "registered"
    notes: str = ""


class Sponsor(BaseModel):
    name: str
    logo: Optional[str] = None
    website: Optional[str] = None
    contribution: Optional[str] = None


class Event(BaseModel):
    """
    Events collection schema
    Collection name: "event"
    """
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    type: EventType
    organizer_id: str
    location: EventLocation
    schedule: Schedule
    capacity: Capacity = Field(default_factory=Capacity)
    pricing: EventPricing = Field(default_factory=EventPricing)
    categories: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    images: List[ProductImage] = Field(default_factory=list)
    requirements: Requirements = Field(default_factory=Requirements)
    attendees: List[Attendee] = Field(default_factory=list)
    featured_artisan_ids: List[str] = Field(default_factory=list)
    sponsors: List[Sponsor] = Field(default_factory=list)
    status: EventStatus = "draft"
    is_featured: bool = False


# --------------------- Order ---------------------

class Customization(BaseModel):
    option: str
    value: str
    price_modifier: float = 0


class OrderItem(BaseModel):
    product_id: str = Field(..., description="Product ObjectId as string")
    quantity: int = Field(..., ge=1)
    price: float = Field(..., ge=0, description="Unit price at order time")
    customizations: List[Customization] = Field(default_factory=list)


class OrderPricing(BaseModel):
    subtotal: float = Field(..., ge=0)
    shipping: float = Field(0, ge=0)
    tax: float = Field(0, ge=0)
    discount: float = Field(0, ge=0)
    total: float = Field(..., ge=0)


class OrderShipping(BaseModel):
    address: Address
    method: Optional[str] = None
    tracking_number: Optional[str] = None
    estimated_delivery: Optional[datetime] = None
    actual_delivery: Optional[datetime] = None


class Payment(BaseModel):
    method: Optional[str] = None
    status: PaymentStatus = "pending"
    transaction_id: Optional[str] = None
    paid_at: Optional[datetime] = None


class OrderNotes(BaseModel):
    customer: Optional[str] = None
    artisan: Optional[str] = None
    internal: Optional[str] = None


class TimelineEntry(BaseModel):
    status: OrderStatus
    timestamp: datetime
    note: Optional[str] = None


class Order(BaseModel):
    """
    Orders collection schema
    Collection name: "order"
    """
    order_number: str = Field(..., description="ART-<epoch-millis>-<sequence>")
    customer_id: str
    artisan_id: str
    items: List[OrderItem] = Field(..., min_length=1)
    pricing: OrderPricing
    shipping: OrderShipping
    status: OrderStatus = "pending"
    payment: Payment = Field(default_factory=Payment)
    notes: OrderNotes = Field(default_factory=OrderNotes)
    timeline: List[TimelineEntry] = Field(default_factory=list)
