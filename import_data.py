"""
One-shot import of a JSON dump of display-shaped listings into MongoDB.

The target collection is cleared first, then the cleaned records are
inserted in batches. Records a failed batch did not store are retried one
at a time; anything that still fails is logged and counted. Not safe to run
against a collection that is serving traffic.

Usage: python -m import_data   (configured through the environment / .env)
"""
import json
import logging
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from pymongo.collection import Collection
from pymongo.errors import BulkWriteError, DuplicateKeyError, PyMongoError

import config
from database import Database
from schemas import normalize_record

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    successful: int = 0
    failed: int = 0

    @property
    def processed(self) -> int:
        return self.successful + self.failed


def load_records(path: Path) -> List[Dict[str, Any]]:
    with open(path, "r", encoding="utf-8") as f:
        records = json.load(f)
    if not isinstance(records, list):
        raise ValueError(f"{path} does not contain a JSON array of listings")
    return records


def build_documents(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    now = datetime.now(timezone.utc)
    documents = []
    for record in records:
        doc = normalize_record(record).model_dump(by_alias=True)
        doc["created_at"] = now
        doc["updated_at"] = now
        documents.append(doc)
    return documents


def _insert_one_by_one(collection: Collection, documents: List[Dict[str, Any]], result: ImportResult) -> None:
    for doc in documents:
        try:
            collection.insert_one(doc)
            result.successful += 1
        except DuplicateKeyError as e:
            # the failed batch may have stored this document before the error
            if "_id" in doc and collection.find_one({"_id": doc["_id"]}) is not None:
                result.successful += 1
            else:
                result.failed += 1
                logger.warning("Failed to import listing %s: %s", doc.get("id"), e)
        except PyMongoError as e:
            result.failed += 1
            logger.warning("Failed to import listing %s: %s", doc.get("id"), e)


def insert_in_batches(
    collection: Collection,
    documents: List[Dict[str, Any]],
    batch_size: int = config.IMPORT_BATCH_SIZE,
) -> ImportResult:
    result = ImportResult()
    total = len(documents)
    for start in range(0, total, batch_size):
        batch = documents[start:start + batch_size]
        retry: Optional[List[Dict[str, Any]]] = None
        try:
            collection.insert_many(batch, ordered=False)
            result.successful += len(batch)
        except BulkWriteError as e:
            failed_indexes = sorted({err["index"] for err in e.details.get("writeErrors", [])})
            result.successful += len(batch) - len(failed_indexes)
            retry = [batch[i] for i in failed_indexes]
        except PyMongoError as e:
            logger.warning("Batch starting at record %d failed, inserting one by one: %s", start, e)
            retry = batch
        if retry:
            _insert_one_by_one(collection, retry, result)
        logger.info("Progress: %d/%d", result.processed, total)
    return result


def import_listings(database: Database, path: Path, batch_size: int = config.IMPORT_BATCH_SIZE) -> ImportResult:
    logger.info("Reading %s", path)
    records = load_records(path)
    logger.info("Found %d listings to process", len(records))
    documents = build_documents(records)

    collection = database.listings
    logger.info("Clearing existing data in %s", collection.name)
    collection.delete_many({})
    database.ensure_indexes()

    logger.info("Importing data...")
    result = insert_in_batches(collection, documents, batch_size)
    logger.info("Import completed: %d successful, %d failed", result.successful, result.failed)
    logger.info("Total in database: %d", collection.count_documents({}))
    return result


def main() -> None:
    logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    exit_code = 0
    database = None
    try:
        database = Database.from_env()
        import_listings(database, Path(config.IMPORT_FILE))
    except Exception:
        logger.exception("Fatal error during import")
        exit_code = 1
    finally:
        if database is not None:
            database.close()
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
