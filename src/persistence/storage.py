"""
Document Storage

Key-value storage of named JSON documents addressed by slash-separated paths,
e.g. "businesses/abc123" or "businesses/abc123/intersections/shared/websites/rival.com".

A document's children live in collections under its own path, so a business
document and its intersection results can be stored and listed independently.
"""

import copy
import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


BUSINESSES = "businesses"


def business_path(business_id: str) -> str:
    return f"{BUSINESSES}/{business_id}"


def intersection_collection(business_id: str, mode: str) -> str:
    """Collection holding per-competitor intersection documents for a mode."""
    return f"{business_path(business_id)}/intersections/{mode}/websites"


def intersection_path(business_id: str, mode: str, competitor_domain: str) -> str:
    return f"{intersection_collection(business_id, mode)}/{competitor_domain}"


def keyword_ideas_path(business_id: str, doc_id: str, history: bool = False) -> str:
    collection = "keyword_ideas_history" if history else "keyword_ideas"
    return f"{business_path(business_id)}/{collection}/{doc_id}"


def _clean_path(path: str) -> str:
    return path.replace("..", "").strip("/")


class DocumentStore(ABC):
    """Abstract base class for document stores."""

    @abstractmethod
    async def get(self, path: str) -> Optional[Dict[str, Any]]:
        """Load a document. Returns None if it doesn't exist."""
        pass

    @abstractmethod
    async def set(self, path: str, data: Dict[str, Any]) -> None:
        """Create or replace a document."""
        pass

    @abstractmethod
    async def list_documents(self, collection: str) -> Dict[str, Dict[str, Any]]:
        """Load all documents directly inside a collection, keyed by document id."""
        pass

    async def merge(self, path: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Shallow-merge fields into a document, creating it if missing.

        Returns:
            The merged document
        """
        current = await self.get(path) or {}
        current.update(data)
        await self.set(path, current)
        return current

    async def exists(self, path: str) -> bool:
        return await self.get(path) is not None


class InMemoryDocumentStore(DocumentStore):
    """Dict-backed document store (tests, one-off runs)."""

    def __init__(self, documents: Optional[Dict[str, Dict[str, Any]]] = None):
        self._documents: Dict[str, Dict[str, Any]] = {}
        for path, data in (documents or {}).items():
            self._documents[_clean_path(path)] = copy.deepcopy(data)

    async def get(self, path: str) -> Optional[Dict[str, Any]]:
        data = self._documents.get(_clean_path(path))
        return copy.deepcopy(data) if data is not None else None

    async def set(self, path: str, data: Dict[str, Any]) -> None:
        self._documents[_clean_path(path)] = copy.deepcopy(data)

    async def list_documents(self, collection: str) -> Dict[str, Dict[str, Any]]:
        prefix = _clean_path(collection) + "/"
        return {
            path[len(prefix):]: copy.deepcopy(data)
            for path, data in sorted(self._documents.items())
            if path.startswith(prefix) and "/" not in path[len(prefix):]
        }


class FileDocumentStore(DocumentStore):
    """
    File system document store.

    Each document is a JSON file at <base_path>/<path>.json.
    """

    def __init__(self, base_path: Optional[str] = None):
        """
        Initialize file store.

        Args:
            base_path: Root directory for documents.
                      Defaults to STORAGE_PATH or ~/.keyword-engine/storage/
        """
        if base_path is None:
            base_path = os.getenv(
                "STORAGE_PATH",
                str(Path.home() / ".keyword-engine" / "storage")
            )

        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

        logger.info(f"FileDocumentStore initialized at {self.base_path}")

    def _get_path(self, path: str) -> Path:
        # Document ids may contain dots (domains), so append rather than with_suffix
        target = self.base_path / _clean_path(path)
        return target.parent / f"{target.name}.json"

    async def get(self, path: str) -> Optional[Dict[str, Any]]:
        file_path = self._get_path(path)
        if not file_path.exists():
            return None

        with open(file_path, "r", encoding="utf-8") as f:
            return json.load(f)

    async def set(self, path: str, data: Dict[str, Any]) -> None:
        file_path = self._get_path(path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, default=str)

        logger.debug(f"Saved document to {file_path}")

    async def list_documents(self, collection: str) -> Dict[str, Dict[str, Any]]:
        directory = self.base_path / _clean_path(collection)
        if not directory.is_dir():
            return {}

        documents = {}
        for file_path in sorted(directory.glob("*.json")):
            with open(file_path, "r", encoding="utf-8") as f:
                documents[file_path.name[:-len(".json")]] = json.load(f)
        return documents


def get_document_store(base_path: Optional[str] = None) -> DocumentStore:
    """Get the configured document store (file-backed)."""
    return FileDocumentStore(base_path)
