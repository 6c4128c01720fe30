"""
Database Module

This module handles MongoDB connections and wraps the killmail collection
in the read-only operations the API needs.
"""
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

import pymongo
from bson.errors import BSONError
from pymongo import DESCENDING, MongoClient
from pymongo.errors import PyMongoError

from killmail_api import config
from killmail_api.errors import RecordNotFound, StoreOperationError

logger = logging.getLogger(__name__)

# Cache for MongoDB clients
_clients = {}


def get_client(mongo_uri: str) -> MongoClient:
    """
    Get or create a MongoDB client for the given URI.

    Args:
        mongo_uri: MongoDB connection string

    Returns:
        MongoClient instance
    """
    if mongo_uri not in _clients:
        timeout_ms = int(config.QUERY_TIMEOUT_SECONDS * 1000)
        _clients[mongo_uri] = MongoClient(
            mongo_uri,
            tz_aware=True,
            connectTimeoutMS=timeout_ms,
            serverSelectionTimeoutMS=timeout_ms,
        )
    return _clients[mongo_uri]


def close_client(mongo_uri: str) -> None:
    client = _clients.pop(mongo_uri, None)
    if client is not None:
        client.close()


def ping(client: MongoClient) -> None:
    """
    Verify the server is reachable.

    Raises:
        StoreOperationError: if the server cannot be reached within the timeout
    """
    try:
        with pymongo.timeout(config.QUERY_TIMEOUT_SECONDS):
            client.admin.command("ping")
    except PyMongoError as e:
        raise StoreOperationError(f"could not connect to MongoDB: {e}") from e


class KillmailStore:
    """
    Read-only access to the killmail collection.

    Every operation runs under a fixed timeout. Query cursors are handed out
    through a context manager and closed when it exits.
    """

    def __init__(self, collection, timeout: Optional[float] = None):
        self.collection = collection
        self.timeout = config.QUERY_TIMEOUT_SECONDS if timeout is None else timeout

    @classmethod
    def from_client(cls, client: MongoClient) -> "KillmailStore":
        collection = client[config.MONGO_DATABASE][config.MONGO_COLLECTION]
        return cls(collection)

    def find_one(self, kill_id: int) -> Dict[str, Any]:
        """
        Fetch a single raw killmail document by id.

        Raises:
            RecordNotFound: if no document has this id
            StoreOperationError: on any driver or BSON decode failure
        """
        try:
            with pymongo.timeout(self.timeout):
                document = self.collection.find_one({"_id": kill_id})
        except (PyMongoError, BSONError) as e:
            raise StoreOperationError(str(e)) from e
        if document is None:
            raise RecordNotFound(kill_id)
        return document

    @contextmanager
    def find_page(
        self, filter_doc: Dict[str, Any], skip: int, limit: int
    ) -> Iterator[Iterator[Dict[str, Any]]]:
        """
        Run a filtered query sorted by id, newest first.

        Yields the open cursor; it is closed when the block exits, however
        it exits. Driver errors raised while iterating inside the block are
        re-raised as StoreOperationError.

        Args:
            filter_doc: MongoDB filter document
            skip: Number of matching documents to skip
            limit: Maximum number of documents to return
        """
        try:
            with pymongo.timeout(self.timeout):
                with self.collection.find(
                    filter_doc, skip=skip, limit=limit, sort=[("_id", DESCENDING)]
                ) as cursor:
                    yield cursor
        except (PyMongoError, BSONError) as e:
            raise StoreOperationError(str(e)) from e
