"""Identifiers, timestamps and the pydantic base shared by monitor models."""

from datetime import datetime, timezone
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, Field
from uuid_extensions import uuid7


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(tz=timezone.utc)


def new_uuid7() -> UUID:
    """Time-sortable id for batches and lead rows."""
    return uuid7()


UUIDv7 = Annotated[UUID, Field(description="Time-sortable UUID v7.")]
UTCTimestamp = Annotated[datetime, Field(description="Timezone-aware UTC timestamp.")]

# Widths match the leads table columns.
IndustryName = Annotated[str, Field(min_length=1, max_length=100)]
CountryCode = Annotated[
    str, Field(min_length=1, max_length=2, description="ISO 3166-1 alpha-2 code."),
]


class MonitorBase(BaseModel):
    """Pydantic base for the monitor's value objects."""

    model_config = {
        "populate_by_name": True,
        "protected_namespaces": (),
    }
