"""
Base Pydantic schemas and common types.
"""
from datetime import datetime, timezone
from typing import Annotated, Any, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    """Current time, UTC, truncated to milliseconds like the stored values."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def _ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """ISO-8601 with millisecond precision and a Z suffix.

    Fixed width keeps stored timestamps sortable as plain strings.
    """
    return _ensure_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# Timestamps are stored as fixed-width ISO strings (e.g. 2026-10-18T09:30:00.000Z)
Timestamp = Annotated[
    datetime,
    AfterValidator(_ensure_utc),
    PlainSerializer(format_timestamp, return_type=str, when_used="json"),
]


class BaseSchema(BaseModel):
    """Base schema with common configuration.

    Field names are snake_case in Python and camelCase on the wire and in
    the stored documents.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_document(self, exclude: Optional[set[str]] = None) -> dict[str, Any]:
        """Serialize to the stored document shape (camelCase, no id, no nulls)."""
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude_none=True,
            exclude={"id"} | (exclude or set()),
        )


class Location(BaseSchema):
    """Geographic position reported by a driver."""
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    timestamp: Optional[int] = Field(
        None,
        description="Epoch milliseconds when the position was taken",
    )
