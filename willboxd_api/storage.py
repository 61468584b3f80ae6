"""
Document store backends.

Handlers never talk to a database directly: they receive a store exposing
``find_one``, ``find_many``, ``insert_one``, ``update_one``, ``upsert_one``,
``delete_one`` and ``count``. Two backends are provided, a single JSON file for
local use and MongoDB for deployments.
"""

import json
import logging
import os
import tempfile
import threading
from uuid import uuid4

from pymongo import ASCENDING, DESCENDING, MongoClient, ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError, PyMongoError

from .errors import StorageError

logger = logging.getLogger(__name__)

__all__ = [
    "ASCENDING",
    "DESCENDING",
    "JsonFileStore",
    "MongoStore",
    "build_store",
    "generate_id",
]


def generate_id():
    """
    Generate an opaque document identifier.

    Returns:
        str: Random UUID4 hex string, independent of the wall clock.
    """
    return uuid4().hex


def matches(document: dict, filter: dict | None):
    """
    Check whether a document satisfies an equality filter.

    Args:
        document (dict): Candidate document.
        filter (dict | None): Field to expected value; empty matches everything.

    Returns:
        bool: True when every filter field equals the document field.
    """
    if not filter:
        return True
    return all(field in document and document[field] == value for field, value in filter.items())


def sort_documents(documents: list[dict], sort: list[tuple[str, int]] | None):
    """
    Sort documents in place following a pymongo-style sort list.

    Missing fields sort after present ones regardless of direction.

    Args:
        documents (list[dict]): Documents to order.
        sort (list[tuple[str, int]] | None): ``(field, ASCENDING | DESCENDING)`` pairs.

    Returns:
        list[dict]: The same list, ordered.
    """
    for field, direction in reversed(sort or []):
        present = [doc for doc in documents if doc.get(field) is not None]
        missing = [doc for doc in documents if doc.get(field) is None]
        present.sort(key=lambda doc: doc[field], reverse=direction == DESCENDING)
        documents[:] = present + missing
    return documents


class JsonFileStore:
    """
    Document store persisted to a single JSON file.

    The file holds one object mapping collection names to lists of documents.
    A re-entrant lock serializes every read-modify-write so upserts are atomic
    within the process.
    """

    backend_name = "json"

    def __init__(self, path: str):
        """
        Initialize the store, creating the data file when missing.

        Args:
            path: Location of the JSON data file.
        """
        self.path = os.path.abspath(path)
        self._lock = threading.RLock()

        directory = os.path.dirname(self.path)
        try:
            os.makedirs(directory, exist_ok=True)
            if not os.path.exists(self.path):
                self._write({})
        except OSError as exc:
            raise StorageError("initialize", f"cannot create {self.path}: {exc}") from exc

        logger.info(f"Initialized JsonFileStore at {self.path}")

    def _read(self):
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as exc:
            raise StorageError("read", f"cannot read {self.path}: {exc}") from exc

        if not isinstance(data, dict):
            raise StorageError("read", f"{self.path} does not contain a JSON object")
        return data

    def _write(self, data: dict):
        directory = os.path.dirname(self.path)
        handle, temp_path = tempfile.mkstemp(dir=directory, prefix=".willboxd-", suffix=".json")
        try:
            with os.fdopen(handle, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(temp_path, self.path)
        except OSError as exc:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise StorageError("write", f"cannot write {self.path}: {exc}") from exc

    def ping(self):
        with self._lock:
            self._read()

    def ensure_unique_index(self, collection: str, fields: list[str]):
        # Upserts already run under the store lock.
        return None

    def find_one(self, collection: str, filter: dict | None = None):
        with self._lock:
            for document in self._read().get(collection, []):
                if matches(document, filter):
                    return dict(document)
        return None

    def find_many(self, collection: str, filter: dict | None = None, sort: list[tuple[str, int]] | None = None):
        with self._lock:
            documents = [dict(doc) for doc in self._read().get(collection, []) if matches(doc, filter)]
        return sort_documents(documents, sort)

    def insert_one(self, collection: str, document: dict):
        record = dict(document)
        record.setdefault("id", generate_id())
        with self._lock:
            data = self._read()
            data.setdefault(collection, []).append(record)
            self._write(data)
        return record["id"]

    def update_one(self, collection: str, filter: dict, patch: dict):
        with self._lock:
            data = self._read()
            for document in data.get(collection, []):
                if matches(document, filter):
                    document.update(patch)
                    self._write(data)
                    return True
        return False

    def upsert_one(self, collection: str, filter: dict, set_fields: dict, set_on_insert: dict | None = None):
        """
        Update the document matching ``filter`` or insert a new one.

        Args:
            collection: Collection name.
            filter: Equality filter identifying the document.
            set_fields: Fields written in both cases.
            set_on_insert: Fields written only when a document is created.

        Returns:
            dict: The document as stored after the operation.
        """
        with self._lock:
            data = self._read()
            documents = data.setdefault(collection, [])
            for document in documents:
                if matches(document, filter):
                    document.update(set_fields)
                    self._write(data)
                    return dict(document)

            record = {**filter, **(set_on_insert or {}), **set_fields}
            record.setdefault("id", generate_id())
            documents.append(record)
            self._write(data)
            return dict(record)

    def delete_one(self, collection: str, filter: dict):
        with self._lock:
            data = self._read()
            documents = data.get(collection, [])
            for index, document in enumerate(documents):
                if matches(document, filter):
                    documents.pop(index)
                    self._write(data)
                    return True
        return False

    def count(self, collection: str, filter: dict | None = None):
        with self._lock:
            return sum(1 for doc in self._read().get(collection, []) if matches(doc, filter))


class MongoStore:
    """
    Document store backed by a MongoDB database.

    Documents are returned without Mongo's ``_id``; each carries its own
    string ``id``.
    """

    backend_name = "mongo"

    def __init__(self, client: MongoClient, database_name: str):
        self.client = client
        self.db = client[database_name]

    def collection(self, name: str) -> Collection:
        return self.db[name]

    def ping(self):
        try:
            self.client.admin.command("ping")
        except PyMongoError as exc:
            raise StorageError("ping", f"MongoDB unreachable: {exc}") from exc

    def ensure_unique_index(self, collection: str, fields: list[str]):
        """
        Create a unique compound index so concurrent upserts cannot duplicate a key.

        Args:
            collection (str): Collection name.
            fields (list[str]): Fields forming the unique key.
        """
        try:
            self.collection(collection).create_index([(field, ASCENDING) for field in fields], unique=True)
        except PyMongoError as exc:
            raise StorageError("create_index", str(exc)) from exc

    def find_one(self, collection: str, filter: dict | None = None):
        try:
            return self.collection(collection).find_one(filter or {}, {"_id": 0})
        except PyMongoError as exc:
            raise StorageError("find_one", str(exc)) from exc

    def find_many(self, collection: str, filter: dict | None = None, sort: list[tuple[str, int]] | None = None):
        try:
            cursor = self.collection(collection).find(filter or {}, {"_id": 0})
            if sort:
                cursor = cursor.sort(sort)
            return list(cursor)
        except PyMongoError as exc:
            raise StorageError("find_many", str(exc)) from exc

    def insert_one(self, collection: str, document: dict):
        # insert_one adds ``_id`` to the dict it is given.
        record = dict(document)
        record.setdefault("id", generate_id())
        try:
            self.collection(collection).insert_one(record)
        except PyMongoError as exc:
            raise StorageError("insert_one", str(exc)) from exc
        return record["id"]

    def update_one(self, collection: str, filter: dict, patch: dict):
        try:
            result = self.collection(collection).update_one(filter, {"$set": patch})
        except PyMongoError as exc:
            raise StorageError("update_one", str(exc)) from exc
        return result.matched_count > 0

    def upsert_one(self, collection: str, filter: dict, set_fields: dict, set_on_insert: dict | None = None):
        """
        Atomically update the matching document or insert it.

        Two concurrent upserts for a missing key can both try to insert; the
        unique index rejects the loser, which is then replayed once as a plain
        update of the winner's document.
        """
        on_insert = dict(set_on_insert or {})
        on_insert.setdefault("id", generate_id())
        update = {"$set": set_fields, "$setOnInsert": on_insert}
        target = self.collection(collection)

        try:
            try:
                return target.find_one_and_update(
                    filter,
                    update,
                    projection={"_id": 0},
                    upsert=True,
                    return_document=ReturnDocument.AFTER,
                )
            except DuplicateKeyError:
                logger.debug(f"Upsert race on {collection} {filter}, retrying as update")
                return target.find_one_and_update(
                    filter,
                    {"$set": set_fields},
                    projection={"_id": 0},
                    return_document=ReturnDocument.AFTER,
                )
        except PyMongoError as exc:
            raise StorageError("upsert_one", str(exc)) from exc

    def delete_one(self, collection: str, filter: dict):
        try:
            result = self.collection(collection).delete_one(filter)
        except PyMongoError as exc:
            raise StorageError("delete_one", str(exc)) from exc
        return result.deleted_count > 0

    def count(self, collection: str, filter: dict | None = None):
        try:
            return self.collection(collection).count_documents(filter or {})
        except PyMongoError as exc:
            raise StorageError("count", str(exc)) from exc


def build_store(config: dict):
    """
    Build and connect the configured document store.

    Args:
        config (dict): Effective application configuration.

    Returns:
        JsonFileStore | MongoStore: A store that answered a ping.

    Raises:
        StorageError: When the backend cannot be reached.
    """
    backend = config["STORAGE_BACKEND"]
    if backend == "mongo":
        client = MongoClient(config["MONGO_URI"], serverSelectionTimeoutMS=config["MONGO_TIMEOUT_MS"])
        store = MongoStore(client, config["MONGO_DB"])
        logger.info(f"Connecting to MongoDB database {config['MONGO_DB']}")
    else:
        store = JsonFileStore(config["DATA_FILE"])

    store.ping()
    return store
