import json
import tempfile
import unittest
from datetime import datetime
from pathlib import Path
from unittest.mock import patch

from bson import ObjectId
from pymongo.errors import AutoReconnect, BulkWriteError, DuplicateKeyError

import import_data
from tests.helpers import display_doc, make_database

RAW_LISTINGS = [
    {
        "id": "1001254",
        "NAME": "Clean & quiet apt home by the park",
        "host id": "80014485718",
        "host name": "Madaline",
        "neighbourhood group": "Brooklyn",
        "neighbourhood": "Kensington",
        "room type": "Private room",
        "price": "$1,234.50",
        "service fee": "$193 ",
        "last review": "10/19/2021",
        "images": ["https://img.example.com/1.jpg"],
    },
    {
        "id": "1002102",
        "NAME": "Skylit Midtown Castle",
        "host name": "Jenna",
        "price": "",
        "minimum nights": "30",
    },
]


class FakeCollection:
    """Collection double whose batch inserts fail in a controlled way.

    Like pymongo, ``insert_many`` assigns ``_id`` to each document up front.
    ``stored_before_error`` documents of a failing batch are kept anyway.
    """

    def __init__(self, batch_error=None, rejected_ids=(), stored_before_error=0):
        self.batch_error = batch_error
        self.rejected_ids = set(rejected_ids)
        self.stored_before_error = stored_before_error
        self.inserted = []
        self.insert_many_calls = 0

    def insert_many(self, documents, ordered=True):
        self.insert_many_calls += 1
        for document in documents:
            document.setdefault("_id", ObjectId())
        if self.batch_error is not None:
            self.inserted.extend(documents[:self.stored_before_error])
            raise self.batch_error
        self.inserted.extend(documents)

    def insert_one(self, document):
        if document["id"] in self.rejected_ids:
            raise DuplicateKeyError(f"E11000 duplicate key: {document['id']}")
        if self.find_one({"_id": document.get("_id")}) is not None:
            raise DuplicateKeyError(f"E11000 duplicate key: _id {document['_id']}")
        self.inserted.append(document)

    def find_one(self, query):
        for document in self.inserted:
            if document.get("_id") == query["_id"]:
                return document
        return None


def docs(*ids):
    return [{"id": listing_id} for listing_id in ids]


class BuildDocumentsTests(unittest.TestCase):
    def test_cleans_currency_numbers_and_dates(self):
        first, second = import_data.build_documents(RAW_LISTINGS)

        self.assertEqual(first["price"], 1234.50)
        self.assertEqual(first["service_fee"], 193.0)
        self.assertEqual(first["host_name"], "Madaline")
        self.assertEqual(first["last_review"], datetime(2021, 10, 19))
        self.assertIsNone(second["price"])
        self.assertEqual(second["minimum_nights"], 30.0)
        self.assertEqual(second["host_id"], "")
        self.assertEqual(second["images"], [])
        self.assertIn("created_at", second)


class InsertInBatchesTests(unittest.TestCase):
    def test_batches_of_fixed_size(self):
        collection = FakeCollection()

        result = import_data.insert_in_batches(collection, docs("a", "b", "c", "d", "e"), batch_size=2)

        self.assertEqual(collection.insert_many_calls, 3)
        self.assertEqual((result.successful, result.failed), (5, 0))

    def test_failed_batch_falls_back_to_single_inserts(self):
        collection = FakeCollection(batch_error=AutoReconnect("connection reset"), rejected_ids={"b"})

        result = import_data.insert_in_batches(collection, docs("a", "b", "c"), batch_size=10)

        self.assertEqual((result.successful, result.failed), (2, 1))
        self.assertEqual([d["id"] for d in collection.inserted], ["a", "c"])

    def test_records_stored_before_a_batch_failure_count_once(self):
        collection = FakeCollection(batch_error=AutoReconnect("connection reset"), stored_before_error=2)

        result = import_data.insert_in_batches(collection, docs("a", "b", "c"), batch_size=10)

        self.assertEqual((result.successful, result.failed), (3, 0))
        self.assertEqual([d["id"] for d in collection.inserted], ["a", "b", "c"])

    def test_bulk_write_error_only_retries_rejected_records(self):
        error = BulkWriteError({"writeErrors": [{"index": 1, "code": 11000, "errmsg": "dup"}], "nInserted": 2})
        collection = FakeCollection(batch_error=error, rejected_ids={"b"})

        result = import_data.insert_in_batches(collection, docs("a", "b", "c"), batch_size=10)

        self.assertEqual((result.successful, result.failed), (2, 1))
        self.assertEqual(collection.inserted, [])


class ImportListingsTests(unittest.TestCase):
    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.path = Path(tmp.name) / "listings.json"
        self.path.write_text(json.dumps(RAW_LISTINGS), encoding="utf-8")
        self.database = make_database()

    def test_replaces_collection_contents(self):
        self.database.listings.insert_one(display_doc("stale"))

        result = import_data.import_listings(self.database, self.path, batch_size=1)

        self.assertEqual((result.successful, result.failed), (2, 0))
        self.assertIsNone(self.database.listings.find_one({"id": "stale"}))
        stored = self.database.listings.find_one({"id": "1001254"})
        self.assertEqual(stored["price"], 1234.50)
        self.assertEqual(stored["neighbourhood_group"], "Brooklyn")

    def test_rejects_non_array_file(self):
        self.path.write_text(json.dumps({"id": "1"}), encoding="utf-8")

        with self.assertRaises(ValueError):
            import_data.import_listings(self.database, self.path)


class MainTests(unittest.TestCase):
    def test_fatal_error_exits_non_zero(self):
        with patch("import_data.Database.from_env", side_effect=RuntimeError("DATABASE_URL not found")):
            with self.assertRaises(SystemExit) as ctx:
                import_data.main()

        self.assertEqual(ctx.exception.code, 1)

    def test_successful_import_exits_zero(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        path = Path(tmp.name) / "listings.json"
        path.write_text(json.dumps(RAW_LISTINGS), encoding="utf-8")
        database = make_database()

        with patch("import_data.Database.from_env", return_value=database), \
                patch("import_data.config.IMPORT_FILE", str(path)):
            with self.assertRaises(SystemExit) as ctx:
                import_data.main()

        self.assertEqual(ctx.exception.code, 0)
        self.assertEqual(database.listings.count_documents({}), 2)


if __name__ == "__main__":
    unittest.main()
