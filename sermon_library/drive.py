"""
Sermon Library - Google Drive Client

Provides async methods to upload, publish and delete files on Google Drive
via the Drive v3 REST API.

Uses httpx for async HTTP operations and google-auth service-account
credentials for the bearer token.  Token refresh is a blocking call in
google-auth, so it runs in a worker thread and only when the cached token
has expired.

Items store the **bare** Drive file id.  Deletion still accepts legacy
references that embed the id in a URL (``...?id=<id>`` or ``/d/<id>/``).
"""

from __future__ import annotations

import asyncio
import json
import re
import uuid
from pathlib import Path
from typing import Any

import httpx
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account
from loguru import logger

from sermon_library.config import (
    DRIVE_API_URL,
    DRIVE_SCOPES,
    DRIVE_TIMEOUT,
    GOOGLE_APPLICATION_CREDENTIALS,
    drive_credentials_info,
)
from sermon_library.errors import RemoteStoreError, UploadError

DEFAULT_MIME_TYPE = "application/octet-stream"

# Anyone with the link may read the file
PUBLIC_READ_PERMISSION = {"role": "reader", "type": "anyone"}

_QUERY_ID_RE = re.compile(r"[?&]id=([^&#]+)")
_PATH_ID_RE = re.compile(r"/d/([A-Za-z0-9_-]+)")
_BARE_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def extract_file_id(reference: str | None) -> str | None:
    """
    Return the Drive file id held by *reference*.

    Accepts a bare id, a URL with an ``id=`` query parameter, or a share
    link of the form ``/file/d/<id>/view``.  Returns None for empty or
    unparseable input.
    """
    if not reference:
        return None
    reference = reference.strip()

    match = _QUERY_ID_RE.search(reference)
    if match:
        return match.group(1)

    match = _PATH_ID_RE.search(reference)
    if match:
        return match.group(1)

    if _BARE_ID_RE.match(reference):
        return reference
    return None


def _build_multipart_body(
    metadata: dict[str, Any], content: bytes, mime_type: str
) -> tuple[bytes, str]:
    """Build a ``multipart/related`` body for a Drive multipart upload."""
    boundary = f"===============sermon-library-{uuid.uuid4().hex}=="
    head = (
        f"--{boundary}\r\n"
        "Content-Type: application/json; charset=UTF-8\r\n\r\n"
        f"{json.dumps(metadata)}\r\n"
        f"--{boundary}\r\n"
        f"Content-Type: {mime_type}\r\n\r\n"
    ).encode("utf-8")
    tail = f"\r\n--{boundary}--\r\n".encode("utf-8")
    return head + content + tail, f"multipart/related; boundary={boundary}"


def load_credentials() -> service_account.Credentials | None:
    """
    Load service-account credentials for Drive.

    Prefers the discrete GOOGLE_* environment variables and falls back to
    the JSON key file at GOOGLE_APPLICATION_CREDENTIALS.  Returns None when
    neither is configured.
    """
    info = drive_credentials_info()
    if info:
        return service_account.Credentials.from_service_account_info(
            info, scopes=DRIVE_SCOPES
        )

    if GOOGLE_APPLICATION_CREDENTIALS:
        key_path = Path(GOOGLE_APPLICATION_CREDENTIALS).expanduser()
        if not key_path.is_file():
            logger.warning(
                "⚠️ GOOGLE_APPLICATION_CREDENTIALS set but file not found: {}",
                key_path,
            )
            return None
        return service_account.Credentials.from_service_account_file(
            str(key_path), scopes=DRIVE_SCOPES
        )

    return None


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------
class DriveClient:
    """Thin async client for the Drive v3 files and permissions endpoints."""

    def __init__(
        self,
        credentials: Any,
        *,
        http_client: httpx.AsyncClient | None = None,
        base_url: str = DRIVE_API_URL,
        timeout: float = DRIVE_TIMEOUT,
    ) -> None:
        self._credentials = credentials
        self._base_url = base_url.rstrip("/")
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    @property
    def is_configured(self) -> bool:
        return self._credentials is not None

    async def close(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def _auth_headers(self) -> dict[str, str]:
        if self._credentials is None:
            raise RemoteStoreError(
                "Google Drive is not configured. Set the GOOGLE_* variables "
                "or GOOGLE_APPLICATION_CREDENTIALS."
            )
        if not self._credentials.valid:
            try:
                await asyncio.to_thread(self._credentials.refresh, GoogleAuthRequest())
            except GoogleAuthError as e:
                raise RemoteStoreError(f"Google Drive authentication failed: {e}") from e
        return {"Authorization": f"Bearer {self._credentials.token}"}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def check_connection(self) -> dict[str, Any]:
        """
        Test the Drive connection.
        Returns a status dict with 'connected' bool and optional error info.
        """
        if not self.is_configured:
            return {"connected": False, "error": "Google Drive is not configured"}

        try:
            headers = await self._auth_headers()
            response = await self._http.get(
                f"{self._base_url}/drive/v3/about",
                params={"fields": "user"},
                headers=headers,
            )
        except (RemoteStoreError, httpx.HTTPError) as e:
            logger.error(f"❌ Google Drive connection failed: {e}")
            return {"connected": False, "error": str(e)}

        if response.status_code != 200:
            msg = f"HTTP {response.status_code}: {response.text[:200]}"
            logger.warning(f"⚠️ Google Drive connection issue: {msg}")
            return {"connected": False, "error": msg}

        user = response.json().get("user", {})
        logger.info("✅ Connected to Google Drive as {}", user.get("emailAddress", "?"))
        return {"connected": True, "user": user.get("emailAddress")}

    async def upload(
        self, content: bytes, file_name: str, mime_type: str | None = None
    ) -> str:
        """
        Upload *content* as a new Drive file, make it publicly readable and
        return its file id.

        Raises UploadError if either the create or the permission step
        fails.  A file created before a failed permission grant is left in
        place.
        """
        mime_type = mime_type or DEFAULT_MIME_TYPE
        try:
            headers = await self._auth_headers()
        except RemoteStoreError as e:
            raise UploadError(e.message) from e

        body, content_type = _build_multipart_body({"name": file_name}, content, mime_type)
        try:
            response = await self._http.post(
                f"{self._base_url}/upload/drive/v3/files",
                params={"uploadType": "multipart", "fields": "id"},
                content=body,
                headers={**headers, "Content-Type": content_type},
            )
        except httpx.HTTPError as e:
            logger.error(f"❌ Upload error for {file_name}: {e}")
            raise UploadError(f"Failed to upload {file_name}: {e}") from e

        if response.status_code not in (200, 201):
            logger.error(
                f"❌ Upload failed ({response.status_code}): {response.text[:200]}"
            )
            raise UploadError(
                f"Failed to upload {file_name}: HTTP {response.status_code}"
            )

        file_id = response.json().get("id")
        if not file_id:
            raise UploadError(f"Google Drive returned no file id for {file_name}")

        try:
            response = await self._http.post(
                f"{self._base_url}/drive/v3/files/{file_id}/permissions",
                json=PUBLIC_READ_PERMISSION,
                headers=headers,
            )
        except httpx.HTTPError as e:
            logger.error(f"❌ Permission grant error for {file_id}: {e}")
            raise UploadError(f"Failed to make {file_name} public: {e}") from e

        if response.status_code not in (200, 201):
            logger.error(
                f"❌ Permission grant failed ({response.status_code}) for {file_id}: "
                f"{response.text[:200]}"
            )
            raise UploadError(
                f"Failed to make {file_name} public: HTTP {response.status_code}"
            )

        logger.info(f"⬆️ Uploaded {file_name} -> {file_id} ({len(content)} bytes)")
        return file_id

    async def delete(self, reference: str | None) -> bool:
        """
        Delete the Drive file held by *reference*.

        Absent or unparseable references are skipped, as is a file Drive no
        longer knows about.  Returns True only when a file was deleted.
        """
        file_id = extract_file_id(reference)
        if file_id is None:
            logger.info("ℹ️ No valid file reference provided, skipping deletion")
            return False

        headers = await self._auth_headers()
        try:
            response = await self._http.delete(
                f"{self._base_url}/drive/v3/files/{file_id}", headers=headers
            )
        except httpx.HTTPError as e:
            logger.error(f"❌ Delete error for {file_id}: {e}")
            raise RemoteStoreError(f"Failed to delete file {file_id}: {e}") from e

        if response.status_code in (200, 204):
            logger.info(f"🗑️ Deleted from Google Drive: {file_id}")
            return True
        if response.status_code == 404:
            logger.warning(f"⚠️ File not found on Google Drive: {file_id}")
            return False

        logger.error(f"❌ Delete failed ({response.status_code}): {file_id}")
        raise RemoteStoreError(
            f"Failed to delete file {file_id}: HTTP {response.status_code}"
        )
