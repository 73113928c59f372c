"""
MongoDB persistence for the singleton page-data document.

The collection holds exactly one document. Every read merges it against the
default shape and writes the result back, so fields added to the defaults
reach the stored document without a separate migration step. Concurrent
saves are last-writer-wins.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError
from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from .configuration import default_page_data, merge_page_data
from .errors import StoreUnavailableError, ValidationError
from .models import PageData

logger = logging.getLogger(__name__)

# Keys owned by the store; client-supplied values are discarded.
_MANAGED_KEYS = ("_id", "createdAt", "updatedAt")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _describe(exc: PydanticValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    return f"Invalid data at {location}: {first['msg']}"


class PageDataStore:
    """
    Fetch-or-create and save operations for the page-data document.

    Attributes:
        collection: pymongo collection holding the document
    """

    def __init__(self, collection: Collection) -> None:
        self.collection = collection

    @classmethod
    def from_uri(cls, uri: str, db_name: str, collection_name: str) -> "PageDataStore":
        client: MongoClient = MongoClient(uri)
        return cls(client[db_name][collection_name])

    def close(self) -> None:
        self.collection.database.client.close()

    def ping(self) -> None:
        """
        Check that the document store is reachable.

        Raises:
            StoreUnavailableError: If the server does not answer
        """
        try:
            self.collection.database.client.admin.command("ping")
        except PyMongoError as exc:
            raise StoreUnavailableError(f"Document store unreachable: {exc}") from exc

    def fetch_or_create(self) -> Dict[str, Any]:
        """
        Load the page data, creating it from the defaults on first use.

        An existing document is merged against the defaults and written back
        before being returned.

        Returns:
            The page-data document without its Mongo ``_id``

        Raises:
            StoreUnavailableError: If the document store fails
        """
        try:
            doc = self.collection.find_one({})
            if doc is None:
                now = _utcnow()
                page = {**default_page_data(), "createdAt": now, "updatedAt": now}
                self.collection.insert_one(dict(page))
                logger.info("Page data created from defaults")
                return page

            doc_id = doc.pop("_id")
            merged = merge_page_data(doc)
            self.collection.replace_one({"_id": doc_id}, merged)
            return merged
        except PyMongoError as exc:
            logger.error(f"Failed to load page data: {exc}")
            raise StoreUnavailableError(f"Document store error: {exc}") from exc

    def save(self, payload: Any) -> Dict[str, Any]:
        """
        Merge a submitted document against the defaults and persist it.

        Args:
            payload: Page data as posted by the admin panel; may be partial

        Returns:
            The stored document without its Mongo ``_id``

        Raises:
            ValidationError: If the payload is not an object or a section
                has the wrong shape (e.g. a service without a title)
            StoreUnavailableError: If the document store fails
        """
        if not isinstance(payload, dict):
            raise ValidationError("Invalid data")

        submitted = {key: value for key, value in payload.items() if key not in _MANAGED_KEYS}
        try:
            page = PageData.model_validate(merge_page_data(submitted)).model_dump()
        except PydanticValidationError as exc:
            raise ValidationError(_describe(exc)) from exc

        try:
            existing: Optional[Dict[str, Any]] = self.collection.find_one({}, {"createdAt": 1})
            now = _utcnow()
            page["createdAt"] = (existing or {}).get("createdAt") or now
            page["updatedAt"] = now
            doc_filter = {"_id": existing["_id"]} if existing else {}
            self.collection.replace_one(doc_filter, dict(page), upsert=True)
        except PyMongoError as exc:
            logger.error(f"Failed to save page data: {exc}")
            raise StoreUnavailableError(f"Document store error: {exc}") from exc

        logger.info("Page data saved")
        return page
