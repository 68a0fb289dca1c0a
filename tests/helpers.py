from typing import Any, Dict, Optional

import mongomock

from database import Database


def make_database() -> Database:
    return Database(mongomock.MongoClient(), "quickrentals_test")


def display_doc(listing_id: str, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    doc = {
        "id": listing_id,
        "NAME": f"Cozy loft {listing_id}",
        "host id": "80014485718",
        "host name": "Madaline",
        "neighbourhood group": "Brooklyn",
        "neighbourhood": "Kensington",
        "room type": "Private room",
        "price": "$75",
        "service fee": "$15",
        "review rate number": "4",
        "property_type": "apartment",
        "thumbnail": f"https://img.example.com/{listing_id}.jpg",
        "images": [],
    }
    doc.update(extra or {})
    return doc


def normalized_doc(listing_id: str, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    doc = {
        "id": listing_id,
        "NAME": f"Imported studio {listing_id}",
        "host_id": "52335172823",
        "host_name": "Jenna",
        "neighbourhood_group": "Manhattan",
        "neighbourhood": "Midtown",
        "room_type": "Entire home/apt",
        "price": 80.0,
        "service_fee": 16.0,
        "review_rate_number": 5.0,
        "property_type": "condo",
        "thumbnail": "",
        "images": [],
    }
    doc.update(extra or {})
    return doc


VALID_FORM = {
    "id": "9001",
    "name": "Sunny room near the park",
    "host_id": "123",
    "host_name": "Sam",
    "price": "$1,200",
    "room_type": "Private room",
    "property_type": "apartment",
    "neighbourhood_group": "Queens",
    "neighbourhood": "Astoria",
    "thumbnail": "https://img.example.com/9001.jpg",
}
