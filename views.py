import logging
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Query, Request
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates
from pymongo.collection import Collection

import listings as service
from database import Database
from schemas import Listing

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
SITE_TITLE = "QuickRentals"


def format_price(price: Any) -> str:
    if not price:
        return "0"
    return str(price).replace("$", "").strip()


def default_na(value: Any) -> Any:
    return value or "N/A"


templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.filters["format_price"] = format_price
templates.env.filters["default_na"] = default_na


def render(request: Request, name: str, context: Dict[str, Any], status_code: int = 200):
    return templates.TemplateResponse(request, name, context, status_code=status_code)


def render_error(request: Request, message: str, title: str = "Error", status_code: int = 400):
    return render(request, "error.html", {"title": title, "message": message}, status_code=status_code)


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_collection(database: Database = Depends(get_database)) -> Collection:
    return database.listings


def listing_form(
    form_id: Optional[str] = Form(None, alias="id"),
    name: Optional[str] = Form(None),
    host_id: Optional[str] = Form(None),
    host_name: Optional[str] = Form(None),
    host_identity_verified: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    service_fee: Optional[str] = Form(None),
    room_type: Optional[str] = Form(None),
    property_type: Optional[str] = Form(None),
    neighbourhood_group: Optional[str] = Form(None),
    neighbourhood: Optional[str] = Form(None),
    minimum_nights: Optional[str] = Form(None),
    availability_365: Optional[str] = Form(None),
    review_rate_number: Optional[str] = Form(None),
    number_of_reviews: Optional[str] = Form(None),
    cancellation_policy: Optional[str] = Form(None),
    instant_bookable: Optional[str] = Form(None),
    house_rules: Optional[str] = Form(None),
    thumbnail: Optional[str] = Form(None),
    images: Optional[str] = Form(None),
) -> Listing:
    """Collect the add/edit form into a Listing; blank inputs count as unset."""
    submitted = {
        "id": form_id,
        "name": name,
        "host_id": host_id,
        "host_name": host_name,
        "host_identity_verified": host_identity_verified,
        "price": price,
        "service_fee": service_fee,
        "room_type": room_type,
        "property_type": property_type,
        "neighbourhood_group": neighbourhood_group,
        "neighbourhood": neighbourhood,
        "minimum_nights": minimum_nights,
        "availability_365": availability_365,
        "review_rate_number": review_rate_number,
        "number_of_reviews": number_of_reviews,
        "cancellation_policy": cancellation_policy,
        "instant_bookable": instant_bookable,
        "house_rules": house_rules,
        "thumbnail": thumbnail,
    }
    values: Dict[str, Any] = {k: v.strip() for k, v in submitted.items() if v is not None and v.strip()}
    image_list = [img.strip() for img in (images or "").split(",") if img.strip()]
    if image_list:
        values["images"] = image_list
    return Listing(**values)


router = APIRouter()


@router.get("/")
def home(request: Request):
    return render(request, "index.html", {"title": SITE_TITLE, "message": f"Welcome to {SITE_TITLE}"})


@router.get("/listings")
def all_listings(request: Request, collection: Collection = Depends(get_collection)):
    items = service.list_listings(collection)
    return render(request, "listings.html", {"title": "All Listings", "listings": items})


@router.get("/listings/filter")
def filter_listings(
    request: Request,
    room_type: Optional[str] = Query(None, alias="roomType"),
    neighbourhood_group: Optional[str] = Query(None, alias="neighbourhoodGroup"),
    min_price: Optional[str] = Query(None, alias="minPrice"),
    max_price: Optional[str] = Query(None, alias="maxPrice"),
    min_rating: Optional[str] = Query(None, alias="minRating"),
    property_type: Optional[str] = Query(None, alias="propertyType"),
    collection: Collection = Depends(get_collection),
):
    items = service.filter_listings(
        collection,
        room_type=room_type,
        neighbourhood_group=neighbourhood_group,
        property_type=property_type,
        min_price=min_price,
        max_price=max_price,
        min_rating=min_rating,
    )
    filters = {
        "roomType": room_type or "",
        "neighbourhoodGroup": neighbourhood_group or "",
        "minPrice": min_price or "",
        "maxPrice": max_price or "",
        "minRating": min_rating or "",
        "propertyType": property_type or "",
    }
    return render(request, "listings.html", {"title": "Filtered Listings", "listings": items, "filters": filters})


@router.get("/quick-search")
def quick_search(
    request: Request,
    term: Optional[str] = Query(None, alias="quickSearch"),
    collection: Collection = Depends(get_collection),
):
    if not term or not term.strip():
        return RedirectResponse("/listings", status_code=302)
    items = service.quick_search(collection, term)
    return render(
        request,
        "listings.html",
        {"title": "Search Results", "listings": items, "quick_search": term.strip()},
    )


@router.get("/listing/{listing_id}")
def view_listing(request: Request, listing_id: str, collection: Collection = Depends(get_collection)):
    listing = service.get_listing(collection, listing_id)
    if listing is None:
        raise HTTPException(status_code=404, detail="Listing not found")
    return render(request, "listing.html", {"title": f"Listing {listing.id}", "listing": listing})


# ----------------------- Search -----------------------
@router.get("/search")
def search_form(request: Request):
    return render(request, "search.html", {"title": "Search Listing"})


@router.post("/search")
@router.post("/search/listing")
def search(
    request: Request,
    search_type: Optional[str] = Form(None, alias="searchType"),
    search_value: Optional[str] = Form(None, alias="searchValue"),
    min_price: Optional[str] = Form(None, alias="minPrice"),
    max_price: Optional[str] = Form(None, alias="maxPrice"),
    collection: Collection = Depends(get_collection),
):
    logger.info("Search request: type=%s value=%r min=%r max=%r", search_type, search_value, min_price, max_price)
    items, description = service.search_listings(collection, search_type, search_value, min_price, max_price)
    return render(
        request,
        "search_results.html",
        {
            "title": "Search Results",
            "listings": items,
            "search_description": description,
            "results_count": len(items),
        },
    )


# ----------------------- Add / edit / delete -----------------------
@router.get("/add-listing")
def add_listing_form(request: Request):
    return render(request, "add_listing.html", {"title": "Add New Listing"})


@router.post("/add-listing")
def add_listing(
    request: Request,
    payload: Listing = Depends(listing_form),
    collection: Collection = Depends(get_collection),
):
    listing = service.create_listing(collection, payload)
    return render(
        request,
        "listing.html",
        {"title": "Listing Added Successfully", "listing": listing, "message": "Listing added successfully!"},
    )


@router.get("/edit-listing/{listing_id}")
def edit_listing_form(request: Request, listing_id: str, collection: Collection = Depends(get_collection)):
    listing = service.get_listing(collection, listing_id)
    if listing is None:
        raise HTTPException(status_code=404, detail="Listing not found")
    return render(request, "edit_listing.html", {"title": "Edit Listing", "listing": listing})


@router.post("/update-listing/{listing_id}")
def update_listing(
    request: Request,
    listing_id: str,
    changes: Listing = Depends(listing_form),
    collection: Collection = Depends(get_collection),
):
    listing = service.update_listing(collection, listing_id, changes)
    if listing is None:
        raise HTTPException(status_code=404, detail="Listing not found")
    return render(
        request,
        "listing.html",
        {"title": "Listing Updated", "listing": listing, "message": "Listing updated successfully!"},
    )


@router.post("/delete-listing/{listing_id}")
def delete_listing(request: Request, listing_id: str, collection: Collection = Depends(get_collection)):
    if not service.delete_listing(collection, listing_id):
        raise HTTPException(status_code=404, detail="Listing not found")
    return render(
        request,
        "index.html",
        {"title": SITE_TITLE, "message": f"Listing {listing_id} deleted successfully!"},
    )
