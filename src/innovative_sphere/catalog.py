"""Lifecycle rules for the industry and project type reference collections."""

from __future__ import annotations

import logging
import re
import sqlite3

from innovative_sphere.errors import ConflictError, DatabaseError, NotFoundError, ValidationError
from innovative_sphere.models import CatalogCreate, CatalogEntry, CatalogUpdate
from innovative_sphere.store import Collection, Store

logger = logging.getLogger(__name__)

RESOURCE_NAMES = {
    "industries": "Industry",
    "project_types": "Project type",
}


def slugify(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.strip().lower()).strip("-")


class CatalogService:
    """CRUD, search, and soft delete over one collection of the store."""

    def __init__(self, store: Store, collection: Collection):
        self.store = store
        self.collection = collection
        self.resource = RESOURCE_NAMES[collection]

    def list_active(self) -> list[CatalogEntry]:
        try:
            rows = self.store.list_active(self.collection)
        except sqlite3.Error as exc:
            logger.error("Error fetching %s: %s", self.collection, exc)
            raise DatabaseError(f"Failed to fetch {self.collection}") from exc
        return [CatalogEntry.model_validate(row) for row in rows]

    def search(self, query: str) -> list[CatalogEntry]:
        query = (query or "").strip()
        if not query:
            raise ValidationError("Search query is required and must be a non-empty string")
        try:
            rows = self.store.search_active(self.collection, query)
        except sqlite3.Error as exc:
            logger.error("Error searching %s: %s", self.collection, exc)
            raise DatabaseError(f"Failed to search {self.collection}") from exc
        return [CatalogEntry.model_validate(row) for row in rows]

    def get(self, entry_id: str) -> CatalogEntry:
        """Return an active entry, raising ``NotFoundError`` for missing or deactivated ids."""
        try:
            row = self.store.get(self.collection, entry_id.strip(), active_only=True)
        except sqlite3.Error as exc:
            raise DatabaseError(f"Failed to fetch {self.resource.lower()}") from exc
        if row is None:
            raise NotFoundError(self.resource)
        return CatalogEntry.model_validate(row)

    def is_active(self, entry_id: str) -> bool:
        try:
            return self.store.get(self.collection, entry_id.strip(), active_only=True) is not None
        except sqlite3.Error as exc:
            raise DatabaseError(f"Failed to fetch {self.resource.lower()}") from exc

    def create(self, data: CatalogCreate) -> CatalogEntry:
        name = data.name.strip()
        if not name:
            raise ValidationError(f"{self.resource} name is required")
        entry_id = slugify(data.id or name)
        if not entry_id:
            raise ValidationError(f"{self.resource} id must contain letters or digits")

        try:
            row = self.store.insert(self.collection, entry_id, name, data.description.strip())
        except sqlite3.IntegrityError as exc:
            raise ConflictError(f"{self.resource} '{entry_id}' already exists") from exc
        except sqlite3.Error as exc:
            logger.error("Error creating %s: %s", self.resource.lower(), exc)
            raise DatabaseError(f"Failed to create {self.resource.lower()}") from exc

        logger.info("Created %s id=%s", self.resource.lower(), entry_id)
        return CatalogEntry.model_validate(row)

    def update(self, entry_id: str, data: CatalogUpdate) -> CatalogEntry:
        entry_id = entry_id.strip()
        changes = data.model_dump(exclude_none=True)
        if "name" in changes:
            changes["name"] = changes["name"].strip()
            if not changes["name"]:
                raise ValidationError(f"{self.resource} name cannot be empty")
        if "description" in changes:
            changes["description"] = changes["description"].strip()

        try:
            row = self.store.update(self.collection, entry_id, changes)
        except sqlite3.Error as exc:
            logger.error("Error updating %s: %s", self.resource.lower(), exc)
            raise DatabaseError(f"Failed to update {self.resource.lower()}") from exc
        if row is None:
            raise NotFoundError(self.resource)
        return CatalogEntry.model_validate(row)

    def delete(self, entry_id: str) -> None:
        entry_id = entry_id.strip()
        try:
            deleted = self.store.delete(self.collection, entry_id)
        except sqlite3.Error as exc:
            logger.error("Error deleting %s: %s", self.resource.lower(), exc)
            raise DatabaseError(f"Failed to delete {self.resource.lower()}") from exc
        if not deleted:
            raise NotFoundError(self.resource)
        logger.info("Deleted %s id=%s", self.resource.lower(), entry_id)

    def deactivate(self, entry_id: str) -> CatalogEntry:
        """Soft delete: the entry stays stored but drops out of reads and searches."""
        return self.update(entry_id, CatalogUpdate(is_active=False))
