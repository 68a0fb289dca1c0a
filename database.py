import logging
from typing import Any, Dict

from pymongo import MongoClient
from pymongo.collection import Collection

import config

logger = logging.getLogger(__name__)


class Database:
    """Handle on the MongoDB client and the listings collection.

    Opened once at start-up and closed at shutdown by whoever created it.
    """

    def __init__(self, client: MongoClient, name: str, collection_name: str = config.LISTINGS_COLLECTION):
        self.client = client
        self.db = client[name]
        self.collection_name = collection_name

    @classmethod
    def from_env(cls) -> "Database":
        if not config.DATABASE_URL:
            raise RuntimeError("DATABASE_URL not found in environment")
        logger.info("Connecting to MongoDB database %s", config.DATABASE_NAME)
        return cls(MongoClient(config.DATABASE_URL), config.DATABASE_NAME)

    @property
    def name(self) -> str:
        return self.db.name

    @property
    def listings(self) -> Collection:
        return self.db[self.collection_name]

    def ensure_indexes(self) -> None:
        self.listings.create_index("id", unique=True)

    def status(self) -> Dict[str, Any]:
        response = {
            "backend": "✅ Running",
            "database": "❌ Not Available",
            "database_name": self.name,
            "connection_status": "Not Connected",
            "collections": [],
        }
        try:
            response["collections"] = self.db.list_collection_names()[:10]
            response["database"] = "✅ Connected & Working"
            response["connection_status"] = "Connected"
        except Exception as e:
            response["database"] = f"❌ Error: {str(e)[:120]}"
        return response

    def close(self) -> None:
        self.client.close()
        logger.info("Database connection closed")
