# storage_mongo.py
import logging
from typing import Any, Dict, List, Optional, Tuple

from pymongo import ASCENDING, MongoClient, ReturnDocument
from pymongo.errors import PyMongoError

from .config import MONGO_DB, MONGO_URI
from .errors import MVCCConflict
from .storage import LedgerStore

logger = logging.getLogger(__name__)

STATE_COLLECTION = "ledger_state"
HISTORY_COLLECTION = "ledger_history"
META_COLLECTION = "ledger_meta"


class MongoLedgerStore(LedgerStore):
    """
    Ledger state kept in MongoDB.

    Each commit runs in one multi-document transaction (requires a replica set):
    the read set is re-validated, the head version is bumped and every write
    lands together with its history entry.
    """
    name = "mongo"

    def __init__(self, uri: str = MONGO_URI, db_name: str = MONGO_DB):
        """Initialize MongoDB connection"""
        try:
            self.client = MongoClient(uri)
            self.db = self.client[db_name]
            self.state = self.db[STATE_COLLECTION]
            self.history_collection = self.db[HISTORY_COLLECTION]
            self.meta = self.db[META_COLLECTION]

            self.history_collection.create_index([("key", ASCENDING), ("version", ASCENDING)])

            # Test connection
            self.client.server_info()
            logger.info(f"Connected to MongoDB at {uri}, database: {db_name}")
        except PyMongoError as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            raise

    def get(self, key: str, session=None) -> Optional[Tuple[str, int]]:
        doc = self.state.find_one({"_id": key}, session=session)
        if doc is None:
            return None
        return doc["value"], doc["version"]

    def range(self, start: str, end: str, session=None) -> List[Tuple[str, str, int]]:
        bounds = {"$gte": start}
        if end:
            bounds["$lt"] = end
        cursor = self.state.find({"_id": bounds}, session=session).sort("_id", ASCENDING)
        return [(doc["_id"], doc["value"], doc["version"]) for doc in cursor]

    def history(self, key: str) -> List[Dict[str, Any]]:
        cursor = self.history_collection.find({"key": key}, {"_id": 0, "key": 0}).sort("version", ASCENDING)
        return list(cursor)

    def _validate(self, read_set, range_reads, session) -> None:
        # Same checks as LedgerStore.validate, but inside the commit session
        for key, seen in read_set.items():
            current = self.get(key, session=session)
            if (current[1] if current else None) != seen:
                raise MVCCConflict(f"key {key} changed since it was read")
        for scan in range_reads:
            current = {key: version for key, _, version in self.range(scan.start, scan.end, session=session)}
            if current != scan.versions:
                raise MVCCConflict(f"range [{scan.start}, {scan.end}) changed since it was read")

    def commit(self, tx_id, timestamp, read_set, range_reads, writes) -> int:
        try:
            with self.client.start_session() as session:
                with session.start_transaction():
                    self._validate(read_set, range_reads, session)
                    head = self.meta.find_one_and_update(
                        {"_id": "head"},
                        {"$inc": {"version": 1}},
                        upsert=True,
                        return_document=ReturnDocument.AFTER,
                        session=session,
                    )
                    version = head["version"]
                    for key, value in writes.items():
                        if value is None:
                            self.state.delete_one({"_id": key}, session=session)
                        else:
                            self.state.replace_one(
                                {"_id": key},
                                {"_id": key, "value": value, "version": version},
                                upsert=True,
                                session=session,
                            )
                        self.history_collection.insert_one({
                            "key": key,
                            "txId": tx_id,
                            "timestamp": timestamp,
                            "isDelete": value is None,
                            "value": value,
                            "version": version,
                        }, session=session)
        except PyMongoError as e:
            logger.error(f"Error committing transaction {tx_id}: {e}")
            raise
        logger.debug(f"Committed {tx_id} at version {version} ({len(writes)} writes)")
        return version

    def close(self):
        """Close MongoDB connection"""
        self.client.close()
        logger.info("MongoDB connection closed")
