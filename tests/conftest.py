"""
Sermon Library - Pytest Configuration & Shared Fixtures

Provides reusable fixtures for:
- An in-memory item repository with the same contract as ItemRepository
- A recording file store standing in for the Google Drive client
- An ItemManager wired to both
- A FastAPI TestClient for the application with that manager injected
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from sermon_library.database import ITEM_FIELDS
from sermon_library.drive import extract_file_id
from sermon_library.errors import NotFoundError, RemoteStoreError, UploadError
from sermon_library.main import create_app
from sermon_library.services.item_manager import ItemManager

# ---------------------------------------------------------------------------
# Sample payloads
# ---------------------------------------------------------------------------
SAMPLE_THUMBNAIL = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
SAMPLE_AUDIO = b"ID3" + b"\x00" * 64


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------
class InMemoryItemRepository:
    """Dict-backed repository following ItemRepository's contract."""

    def __init__(self) -> None:
        self.items: Dict[str, Dict[str, Any]] = {}

    def _get(self, item_id: str) -> Dict[str, Any]:
        if item_id not in self.items:
            raise NotFoundError()
        return self.items[item_id]

    async def list_all(self) -> List[Dict[str, Any]]:
        return sorted(
            (dict(item) for item in self.items.values()),
            key=lambda item: item["date"],
            reverse=True,
        )

    async def get_by_id(self, item_id: str) -> Dict[str, Any]:
        return dict(self._get(item_id))

    async def create(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        item = {field: fields.get(field) for field in ITEM_FIELDS}
        if item["date"] is None:
            item["date"] = datetime.now(timezone.utc)
        item["id"] = str(ObjectId())
        self.items[item["id"]] = item
        return dict(item)

    async def update(self, item_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        item = self._get(item_id)
        item.update({k: v for k, v in fields.items() if k in ITEM_FIELDS and v})
        return dict(item)

    async def clear_file(self, item_id: str, field: str) -> None:
        self._get(item_id)[field] = None

    async def delete_by_id(self, item_id: str) -> None:
        self._get(item_id)
        del self.items[item_id]


class RecordingFileStore:
    """Stands in for DriveClient and records every call made to it."""

    is_configured = True

    def __init__(self) -> None:
        self.uploads: List[Dict[str, Any]] = []
        self.deleted: List[str] = []
        self.calls: List[str] = []
        self.fail_uploads: set = set()
        self.fail_deletes: set = set()
        self._counter = 0

    async def upload(
        self, content: bytes, file_name: str, mime_type: Optional[str] = None
    ) -> str:
        self.calls.append(f"upload:{file_name}")
        if file_name in self.fail_uploads:
            raise UploadError(f"Failed to upload {file_name}: HTTP 500")
        self._counter += 1
        file_id = f"drive-file-{self._counter}"
        self.uploads.append(
            {"id": file_id, "name": file_name, "mime_type": mime_type, "size": len(content)}
        )
        return file_id

    async def delete(self, reference: Optional[str]) -> bool:
        file_id = extract_file_id(reference)
        self.calls.append(f"delete:{file_id}")
        if file_id is None:
            return False
        if file_id in self.fail_deletes:
            raise RemoteStoreError(f"Failed to delete file {file_id}: HTTP 500")
        self.deleted.append(file_id)
        return True


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def repository() -> InMemoryItemRepository:
    return InMemoryItemRepository()


@pytest.fixture
def store() -> RecordingFileStore:
    return RecordingFileStore()


@pytest.fixture
def manager(repository, store) -> ItemManager:
    return ItemManager(repository, store)


@pytest.fixture
def client(manager) -> TestClient:
    """TestClient for the app with the in-memory manager injected."""
    return TestClient(create_app(item_manager=manager))
