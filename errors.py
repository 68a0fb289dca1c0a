from typing import List


class ListingError(Exception):
    """Base class for errors raised by the listing services."""


class ListingValidationError(ListingError):
    """Bad input: missing fields, unknown search type, unparseable bounds."""


class MissingFieldsError(ListingValidationError):
    def __init__(self, fields: List[str]):
        self.fields = list(fields)
        super().__init__(f"Please fill all required fields. Missing: {', '.join(self.fields)}")


class DuplicateListingError(ListingError):
    def __init__(self, listing_id: str):
        self.listing_id = listing_id
        super().__init__(f"Listing with ID {listing_id} already exists")
