"""
Listing queries and mutations.

Every function takes the listings collection explicitly. Reads accept
documents in either stored shape and return display-shaped Listing models;
"not found" is reported by returning None or False rather than raising.
"""
import logging
import math
import re
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from pymongo import ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError

import config
from cleaning import clean_price_text, parse_currency, parse_number
from errors import DuplicateListingError, ListingValidationError, MissingFieldsError
from schemas import Listing, display_key, listing_from_document, normalized_key

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    "id",
    "name",
    "host_id",
    "host_name",
    "price",
    "room_type",
    "property_type",
    "neighbourhood_group",
    "neighbourhood",
    "thumbnail",
)

CREATE_DEFAULTS = {
    "host_identity_verified": "unconfirmed",
    "lat": "40.7128",
    "long": "-74.0060",
}

# search type -> (listing field, label used in result descriptions)
SEARCH_FIELDS = {
    "id": ("id", "ID"),
    "name": ("name", "Name"),
    "neighbourhood": ("neighbourhood", "Neighbourhood"),
    "host_name": ("host_name", "Host Name"),
    "room_type": ("room_type", "Room Type"),
}
PRICE_RANGE = "price_range"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _either_shape(field: str, condition: Any) -> Dict[str, Any]:
    d_key, n_key = display_key(field), normalized_key(field)
    if d_key == n_key:
        return {d_key: condition}
    return {"$or": [{d_key: condition}, {n_key: condition}]}


def _all_of(clauses: List[Dict[str, Any]]) -> Dict[str, Any]:
    if not clauses:
        return {}
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


def _contains(term: str) -> Dict[str, Any]:
    return {"$regex": re.escape(term), "$options": "i"}


def _collect(
    docs: Iterable[Dict[str, Any]],
    limit: int,
    predicate: Optional[Callable[[Listing], bool]] = None,
) -> List[Listing]:
    results: List[Listing] = []
    for doc in docs:
        listing = listing_from_document(doc)
        if predicate is not None and not predicate(listing):
            continue
        results.append(listing)
        if len(results) >= limit:
            break
    return results


def parse_bound(label: str, raw: Any) -> Optional[float]:
    """Blank means "no bound"; anything else must be a finite number."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    if isinstance(raw, bool):
        raise ListingValidationError(f"Invalid {label}: {raw}")
    try:
        value = float(raw.strip() if isinstance(raw, str) else raw)
    except (TypeError, ValueError):
        raise ListingValidationError(f"Invalid {label}: {raw}")
    if not math.isfinite(value):
        raise ListingValidationError(f"Invalid {label}: {raw}")
    return value


def price_between(min_price: Optional[float], max_price: Optional[float]) -> Callable[[Listing], bool]:
    def predicate(listing: Listing) -> bool:
        if min_price is None and max_price is None:
            return True
        price = parse_currency(listing.price)
        if price is None:
            return False
        if min_price is not None and price < min_price:
            return False
        if max_price is not None and price > max_price:
            return False
        return True

    return predicate


# ----------------------- Reads -----------------------
def list_listings(collection: Collection, limit: int = config.LISTING_LIMIT) -> List[Listing]:
    return _collect(collection.find({}).limit(limit), limit)


def get_listing(collection: Collection, listing_id: str) -> Optional[Listing]:
    doc = collection.find_one({"id": listing_id})
    if not doc:
        return None
    return listing_from_document(doc)


def search_listings(
    collection: Collection,
    search_type: Optional[str],
    search_value: Optional[str] = None,
    min_price: Any = None,
    max_price: Any = None,
) -> Tuple[List[Listing], str]:
    """Run one search from the search form.

    Returns the matching listings and a description of the search, e.g.
    "Name: loft" or "Price Range: $50 - $Any".
    """
    if not search_type:
        raise ListingValidationError("Please select a search type")

    if search_type == PRICE_RANGE:
        low = parse_bound("minimum price", min_price)
        high = parse_bound("maximum price", max_price)
        if low is None and high is None:
            raise ListingValidationError("Please provide at least one price value (min or max)")
        listings = _collect(collection.find({}), config.LISTING_LIMIT, price_between(low, high))
        description = f"Price Range: ${str(min_price or '').strip() or '0'} - ${str(max_price or '').strip() or 'Any'}"
        return listings, description

    if search_type not in SEARCH_FIELDS:
        raise ListingValidationError("Invalid search type")
    term = (search_value or "").strip()
    if not term:
        raise ListingValidationError("Please enter a search value")

    field, label = SEARCH_FIELDS[search_type]
    query = _either_shape(field, _contains(term))
    listings = _collect(collection.find(query).limit(config.SEARCH_LIMIT), config.SEARCH_LIMIT)
    logger.info("Found %d listings for %s search %r", len(listings), search_type, term)
    return listings, f"{label}: {term}"


def filter_listings(
    collection: Collection,
    room_type: Optional[str] = None,
    neighbourhood_group: Optional[str] = None,
    property_type: Optional[str] = None,
    min_price: Any = None,
    max_price: Any = None,
    min_rating: Any = None,
    limit: int = config.LISTING_LIMIT,
) -> List[Listing]:
    clauses = []
    if room_type:
        clauses.append(_either_shape("room_type", room_type))
    if neighbourhood_group:
        clauses.append(_either_shape("neighbourhood_group", neighbourhood_group))
    if property_type:
        clauses.append(_either_shape("property_type", property_type))

    in_price_range = price_between(parse_bound("minimum price", min_price), parse_bound("maximum price", max_price))
    rating = parse_bound("minimum rating", min_rating)

    def matches(listing: Listing) -> bool:
        if not in_price_range(listing):
            return False
        if rating is not None:
            listing_rating = parse_number(listing.review_rate_number)
            if listing_rating is None or listing_rating < rating:
                return False
        return True

    listings = _collect(collection.find(_all_of(clauses)), limit, matches)
    logger.info("Found %d listings with %d field filters", len(listings), len(clauses))
    return listings


def quick_search(collection: Collection, term: Optional[str], limit: int = config.LISTING_LIMIT) -> List[Listing]:
    term = (term or "").strip()
    if not term:
        raise ListingValidationError("Please enter a search value")
    query = {"$or": [{"id": _contains(term)}, _either_shape("name", _contains(term))]}
    return _collect(collection.find(query).limit(limit), limit)


# ----------------------- Writes -----------------------
def placeholder_images(listing_id: str) -> List[str]:
    return [
        f"https://picsum.photos/seed/{listing_id}a/600/400",
        f"https://picsum.photos/seed/{listing_id}b/600/400",
    ]


def create_listing(collection: Collection, payload: Listing) -> Listing:
    """Insert a new display-shaped listing.

    Only fields explicitly set on ``payload`` count as provided; every
    missing required field is reported at once.
    """
    provided = payload.model_dump(exclude_unset=True)
    missing = [field for field in REQUIRED_FIELDS if not str(provided.get(field) or "").strip()]
    if missing:
        raise MissingFieldsError(missing)

    listing_id = payload.id.strip()
    if collection.find_one({"id": listing_id}) is not None:
        raise DuplicateListingError(listing_id)

    data = {**CREATE_DEFAULTS, **provided}
    data["id"] = listing_id
    data["price"] = clean_price_text(payload.price)
    if not data.get("images"):
        data["images"] = placeholder_images(listing_id)
    listing = Listing(**data)

    document = listing.model_dump(by_alias=True)
    now = _utcnow()
    document["created_at"] = now
    document["updated_at"] = now
    try:
        collection.insert_one(document)
    except DuplicateKeyError:
        raise DuplicateListingError(listing_id)
    logger.info("Created listing %s", listing_id)
    return listing


def update_listing(collection: Collection, listing_id: str, changes: Listing) -> Optional[Listing]:
    """Merge the fields set on ``changes`` into the listing with ``listing_id``.

    The id itself is never rewritten. Normalized keys shadowed by an updated
    display key are dropped so the document does not carry two values.
    """
    update = changes.model_dump(by_alias=True, exclude_unset=True, exclude={"id"})
    if "price" in update:
        update["price"] = clean_price_text(update["price"])
    update["updated_at"] = _utcnow()

    stale = {
        normalized_key(field): ""
        for field in changes.model_fields_set
        if field != "id" and normalized_key(field) != display_key(field)
    }
    operations: Dict[str, Any] = {"$set": update}
    if stale:
        operations["$unset"] = stale

    doc = collection.find_one_and_update(
        {"id": listing_id},
        operations,
        return_document=ReturnDocument.AFTER,
    )
    if doc is None:
        return None
    logger.info("Updated listing %s (%s)", listing_id, ", ".join(sorted(changes.model_fields_set)) or "no fields")
    return listing_from_document(doc)


def delete_listing(collection: Collection, listing_id: str) -> bool:
    doc = collection.find_one_and_delete({"id": listing_id})
    if doc is None:
        return False
    logger.info("Deleted listing %s", listing_id)
    return True
