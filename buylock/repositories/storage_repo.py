# buylock/repositories/storage_repo.py
from datetime import datetime, timezone

from sqlmodel import Session

from buylock.models.storage import StorageEntry


class StorageRepository:
    """
    Data access layer for StorageEntry.

    - Pure DB operations (CRUD + queries).
    - No FastAPI, no business logic.
    """

    def get(self, session: Session, namespace: str, key: str) -> StorageEntry | None:
        return session.get(StorageEntry, (namespace, key))

    def upsert(self, session: Session, namespace: str, key: str, value: str) -> StorageEntry:
        entry = self.get(session, namespace, key)
        if entry is None:
            entry = StorageEntry(namespace=namespace, key=key, value=value)
        else:
            entry.value = value
            entry.updated_at = datetime.now(timezone.utc)
        session.add(entry)
        session.commit()
        session.refresh(entry)
        return entry

    def delete(self, session: Session, namespace: str, key: str) -> None:
        entry = self.get(session, namespace, key)
        if entry is not None:
            session.delete(entry)
            session.commit()