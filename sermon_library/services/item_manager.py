"""
Sermon Library - Item Management Service

Keeps an item's metadata record in MongoDB consistent with its files on
Google Drive:

- Create: upload the thumbnail and audio file (one after the other), then
  insert the record with the resulting file ids
- Edit: upload replacement files, write the new ids together with the
  changed text fields, and only then delete the replaced files
- Delete: delete the item's files, then the record

Editing uploads before it deletes so a failed upload never leaves the
record pointing at a file that is already gone.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from loguru import logger

from sermon_library.database import ItemRepository
from sermon_library.drive import DriveClient
from sermon_library.errors import RemoteStoreError

# Item fields that hold a Drive file id
FILE_FIELDS = ("thumbnail", "audioFile")


@dataclass
class UploadedFile:
    """A file part received from a multipart form, held in memory."""

    content: bytes
    filename: str
    content_type: Optional[str] = None


class ItemManager:
    """Orchestrates item CRUD across the repository and the file store."""

    def __init__(self, repository: ItemRepository, store: DriveClient) -> None:
        self.repository = repository
        self.store = store

    async def list_items(self) -> List[Dict[str, Any]]:
        return await self.repository.list_all()

    async def get_item(self, item_id: str) -> Dict[str, Any]:
        return await self.repository.get_by_id(item_id)

    async def _upload(self, upload: UploadedFile) -> str:
        return await self.store.upload(
            upload.content, upload.filename, upload.content_type
        )

    async def create_item(
        self,
        fields: Dict[str, Any],
        thumbnail: Optional[UploadedFile] = None,
        audio_file: Optional[UploadedFile] = None,
    ) -> Dict[str, Any]:
        """Upload the given files and insert a new item referencing them."""
        record = dict(fields)
        record["thumbnail"] = await self._upload(thumbnail) if thumbnail else None
        record["audioFile"] = await self._upload(audio_file) if audio_file else None

        try:
            return await self.repository.create(record)
        except Exception:
            orphans = [record[f] for f in FILE_FIELDS if record[f]]
            if orphans:
                logger.warning(
                    "⚠️ Item insert failed; uploaded files left orphaned: {}",
                    ", ".join(orphans),
                )
            raise

    async def edit_item(
        self,
        item_id: str,
        fields: Dict[str, Any],
        thumbnail: Optional[UploadedFile] = None,
        audio_file: Optional[UploadedFile] = None,
    ) -> Dict[str, Any]:
        """
        Apply a sparse update to an item, replacing any files supplied.

        New files are uploaded first and the record is updated with their
        ids; the files they replace are deleted afterwards.  If an upload
        fails, the record and its current files are left untouched.
        """
        existing = await self.repository.get_by_id(item_id)

        staged = {k: v for k, v in fields.items() if v}
        replacements = {"thumbnail": thumbnail, "audioFile": audio_file}
        uploaded: List[str] = []
        try:
            for field_name, upload in replacements.items():
                if upload is not None:
                    staged[field_name] = await self._upload(upload)
                    uploaded.append(staged[field_name])

            updated = await self.repository.update(item_id, staged)
        except Exception:
            if uploaded:
                logger.warning(
                    "⚠️ Item {} update failed; uploaded files left orphaned: {}",
                    item_id,
                    ", ".join(uploaded),
                )
            raise

        for field_name, upload in replacements.items():
            old_reference = existing.get(field_name)
            if upload is None or not old_reference:
                continue
            try:
                await self.store.delete(old_reference)
            except RemoteStoreError as e:
                # The record already points at the new file
                logger.error(
                    "❌ Could not delete replaced {} {} for item {}: {}",
                    field_name,
                    old_reference,
                    item_id,
                    e,
                )

        return updated

    async def delete_item(self, item_id: str) -> Dict[str, str]:
        """
        Delete an item's files from Drive, then the item itself.

        If a file delete fails the item is kept, with the references to any
        files already deleted cleared.
        """
        existing = await self.repository.get_by_id(item_id)

        deleted: List[str] = []
        try:
            for field_name in FILE_FIELDS:
                if existing.get(field_name):
                    await self.store.delete(existing[field_name])
                    deleted.append(field_name)
        except RemoteStoreError:
            for field_name in deleted:
                await self.repository.clear_file(item_id, field_name)
            raise

        await self.repository.delete_by_id(item_id)
        return {"message": "Item deleted successfully"}
