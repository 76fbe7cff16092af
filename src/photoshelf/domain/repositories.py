from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from .models import MediaRecord


class IMediaRepository(ABC):
    """Durable store of media records.

    Implementations must serialise access so each call is atomic: a reader
    never observes a half-written record and two writers never interleave.
    Exclusive access is held for one call only, never across a batch.
    """

    @abstractmethod
    def all(self) -> List[MediaRecord]:
        """Snapshot of every known record"""
        pass

    @abstractmethod
    def get(self, id: int) -> Optional[MediaRecord]:
        """Find single record by ID"""
        pass

    @abstractmethod
    def get_by_path(self, path: Path) -> Optional[MediaRecord]:
        """Find single record by its source path"""
        pass

    @abstractmethod
    def upsert(self, record: MediaRecord) -> MediaRecord:
        """Insert or update by source path, assigning an ID on first insert"""
        pass

    @abstractmethod
    def add_preview(self, record: MediaRecord) -> None:
        """Persist the preview path of an already stored record"""
        pass

    @abstractmethod
    def clear_preview(self, id: int) -> None:
        """Forget the preview of a record so the next run regenerates it"""
        pass

    @abstractmethod
    def delete(self, id: int) -> None:
        """Delete record by ID"""
        pass

    @abstractmethod
    def count(self) -> int:
        pass
