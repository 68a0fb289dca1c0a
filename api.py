from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException
from pymongo.collection import Collection

import listings as service
from schemas import Listing
from views import get_collection

router = APIRouter(prefix="/api", tags=["listings"])


def serialize_listing(listing: Listing) -> Dict[str, Any]:
    return listing.model_dump(by_alias=True)


@router.get("/listings")
def list_listings(collection: Collection = Depends(get_collection)) -> List[Dict[str, Any]]:
    return [serialize_listing(x) for x in service.list_listings(collection)]


@router.get("/listing/{listing_id}")
def get_listing(listing_id: str, collection: Collection = Depends(get_collection)) -> Dict[str, Any]:
    listing = service.get_listing(collection, listing_id)
    if listing is None:
        raise HTTPException(status_code=404, detail="Listing not found")
    return serialize_listing(listing)


@router.post("/listings", status_code=201)
def create_listing(payload: Listing, collection: Collection = Depends(get_collection)) -> Dict[str, Any]:
    return serialize_listing(service.create_listing(collection, payload))


@router.put("/listings/{listing_id}")
def update_listing(listing_id: str, payload: Listing, collection: Collection = Depends(get_collection)) -> Dict[str, Any]:
    listing = service.update_listing(collection, listing_id, payload)
    if listing is None:
        raise HTTPException(status_code=404, detail="Listing not found")
    return serialize_listing(listing)


@router.delete("/listings/{listing_id}")
def delete_listing(listing_id: str, collection: Collection = Depends(get_collection)) -> Dict[str, str]:
    if not service.delete_listing(collection, listing_id):
        raise HTTPException(status_code=404, detail="Listing not found")
    return {"message": "Listing deleted successfully"}
