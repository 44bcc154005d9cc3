"""
Sermon Library - Models

Pydantic response model for items and parsing of the multipart text fields
sent by the upload and edit forms.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from sermon_library.errors import ValidationError


class Item(BaseModel):
    """An item as returned by the API."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: Optional[str] = None
    date: Optional[datetime] = None
    speaker: Optional[str] = None
    series: Optional[str] = None
    thumbnail: Optional[str] = None
    audio_file: Optional[str] = Field(default=None, alias="audioFile")


class DeleteResult(BaseModel):
    message: str


def parse_date(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 date or timestamp from a form field.

    Returns None for an empty value.  Naive values are taken as UTC.
    Raises ValidationError for anything unparseable.
    """
    if value is None or not value.strip():
        return None
    raw = value.strip()
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError as e:
        raise ValidationError(f"Invalid date: {value!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def form_fields(
    name: Optional[str] = None,
    date: Optional[str] = None,
    speaker: Optional[str] = None,
    series: Optional[str] = None,
) -> Dict[str, Any]:
    """Collect the text fields of an upload/edit form into item fields."""
    return {
        "name": name,
        "date": parse_date(date),
        "speaker": speaker,
        "series": series,
    }
