"""
Database Schemas for QuickRentals

Listings live in a single MongoDB collection ("listings") in one of two
shapes:

- Listing: the display shape written by the web app. Keys are human-readable
  ("host name", "room type") and every value is a string, as it was typed
  into the form.
- NormalizedListing: the shape written by the import script. Keys are
  underscored and numbers, currency and dates are typed.

normalize_record / denormalize_record convert between the two, and
listing_from_document reads any stored document back as a Listing.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from cleaning import (
    format_currency,
    format_date,
    format_number,
    parse_currency,
    parse_date,
    parse_number,
)


class Listing(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    id: str = ""
    name: str = Field("", alias="NAME")
    host_id: str = Field("", alias="host id")
    host_identity_verified: str = ""
    host_name: str = Field("", alias="host name")
    neighbourhood_group: str = Field("", alias="neighbourhood group")
    neighbourhood: str = ""
    lat: str = ""
    long: str = ""
    country: str = "United States"
    country_code: str = Field("US", alias="country code")
    instant_bookable: str = "FALSE"
    cancellation_policy: str = "moderate"
    room_type: str = Field("", alias="room type")
    construction_year: str = Field("2020", alias="Construction year")
    price: str = ""
    service_fee: str = Field("$0", alias="service fee")
    minimum_nights: str = Field("1", alias="minimum nights")
    number_of_reviews: str = Field("0", alias="number of reviews")
    last_review: str = Field("", alias="last review")
    reviews_per_month: str = Field("", alias="reviews per month")
    review_rate_number: str = Field("0", alias="review rate number")
    calculated_host_listings_count: str = Field("1", alias="calculated host listings count")
    availability_365: str = Field("365", alias="availability 365")
    house_rules: str = ""
    license: str = ""
    property_type: str = "apartment"
    thumbnail: str = ""
    images: List[str] = Field(default_factory=list)


class NormalizedListing(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = ""
    name: str = Field("", alias="NAME")
    host_id: str = ""
    host_identity_verified: str = ""
    host_name: str = ""
    neighbourhood_group: str = ""
    neighbourhood: str = ""
    lat: Optional[float] = None
    long: Optional[float] = None
    country: str = ""
    country_code: str = ""
    instant_bookable: str = ""
    cancellation_policy: str = ""
    room_type: str = ""
    construction_year: Optional[float] = Field(None, alias="Construction_year")
    price: Optional[float] = None
    service_fee: Optional[float] = None
    minimum_nights: Optional[float] = None
    number_of_reviews: Optional[float] = None
    last_review: Optional[datetime] = None
    reviews_per_month: Optional[float] = None
    review_rate_number: Optional[float] = None
    calculated_host_listings_count: Optional[float] = None
    availability_365: Optional[float] = None
    house_rules: str = ""
    license: str = ""
    property_type: str = ""
    thumbnail: str = ""
    images: List[str] = Field(default_factory=list)


CURRENCY_FIELDS = ("price", "service_fee")
NUMBER_FIELDS = (
    "lat",
    "long",
    "construction_year",
    "minimum_nights",
    "number_of_reviews",
    "reviews_per_month",
    "review_rate_number",
    "calculated_host_listings_count",
    "availability_365",
)
DATE_FIELDS = ("last_review",)


def display_key(field: str) -> str:
    return Listing.model_fields[field].alias or field


def normalized_key(field: str) -> str:
    return NormalizedListing.model_fields[field].alias or field


def _image_list(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [img.strip() for img in value.split(",") if img.strip()]
    return [str(img) for img in value]


def _typed_value(field: str, value: Any) -> Any:
    if field in CURRENCY_FIELDS:
        return parse_currency(value)
    if field in NUMBER_FIELDS:
        return parse_number(value)
    if field in DATE_FIELDS:
        return parse_date(value)
    if field == "images":
        return _image_list(value)
    return "" if value is None else str(value)


def _display_value(field: str, value: Any) -> Any:
    if field == "images":
        return _image_list(value)
    if value is None:
        return ""
    if isinstance(value, datetime):
        return format_date(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if field in CURRENCY_FIELDS:
            return format_currency(value)
        return format_number(value)
    return str(value)


def normalize_record(raw: Dict[str, Any]) -> NormalizedListing:
    """Map a display-keyed record (raw JSON or a dumped Listing) to the normalized shape."""
    values = {field: _typed_value(field, raw.get(display_key(field))) for field in NormalizedListing.model_fields}
    return NormalizedListing(**values)


def denormalize_record(listing: NormalizedListing) -> Dict[str, Any]:
    """Map a normalized listing back to display keys and string values.

    Inverse of normalize_record except for currency, which is rendered to
    whole cents, so $10.126 comes back as "$10.13".
    """
    return {
        display_key(field): _display_value(field, getattr(listing, field))
        for field in NormalizedListing.model_fields
    }


def listing_from_document(doc: Dict[str, Any]) -> Listing:
    """Read a stored document of either shape (or a mix of both) as a Listing.

    Display keys win over normalized keys when a document carries both.
    """
    values: Dict[str, Any] = {}
    for field in Listing.model_fields:
        key = display_key(field)
        if key not in doc:
            key = normalized_key(field)
            if key not in doc:
                continue
        values[field] = _display_value(field, doc[key])
    return Listing(**values)


def to_normalized(listing: Listing) -> NormalizedListing:
    return normalize_record(listing.model_dump(by_alias=True))


def to_display(listing: NormalizedListing) -> Listing:
    return Listing.model_validate(denormalize_record(listing))
