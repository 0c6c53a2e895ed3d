# buylock/models/storage.py
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class StorageEntry(SQLModel, table=True):
    """
    One key/value pair of a client's durable storage.

    Each client (identified by its guest id) owns a namespace;
    a namespace cannot hold two rows for the same key.
    """

    __tablename__ = "client_storage"

    namespace: str = Field(
        primary_key=True,
        max_length=100,
        description="Guest id owning this entry",
    )

    key: str = Field(
        primary_key=True,
        max_length=100,
        description="Storage key, e.g. 'buylock_guest_cart'",
    )

    value: str = Field(
        description="Serialized value (plain string or JSON)",
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Last write timestamp (UTC)",
    )
