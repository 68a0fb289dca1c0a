import os
from dotenv import load_dotenv

load_dotenv()

# Database configuration
DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME", "quickrentals")
LISTINGS_COLLECTION = os.getenv("LISTINGS_COLLECTION", "listings")

# Import script configuration
IMPORT_FILE = os.getenv("IMPORT_FILE", "airbnb_with_photos.json")
IMPORT_BATCH_SIZE = int(os.getenv("IMPORT_BATCH_SIZE", "100"))

# Web server configuration
PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# Result caps
LISTING_LIMIT = 100
SEARCH_LIMIT = 50
