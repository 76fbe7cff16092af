import dataclasses
import json
import logging
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from photoshelf.domain.models import (
    MediaKind,
    MediaMetadata,
    MediaRecord,
    PictureMetadata,
    VideoMetadata,
)
from photoshelf.domain.repositories import IMediaRepository
from photoshelf.errors import StorageError
from photoshelf.infrastructure.db.pool import ConnectionPool

_logger = logging.getLogger(__name__)

_DATETIME_FIELDS = {"exif_created_at", "exif_modified_at", "created_at"}


class SQLiteMediaRepository(IMediaRepository):
    """Catalog of media records stored in a single SQLite table.

    Every public method takes ``self._lock`` for the duration of that one
    call, so the UI thread and the preview worker can share one instance.
    """

    def __init__(self, pool: ConnectionPool):
        self._pool = pool
        self._lock = threading.RLock()
        _logger.debug("[REPO-INIT] SQLiteMediaRepository created, db_path=%s", pool.db_path)
        self._init_table()
        self._migrate_schema()
        self._ensure_indices()

    def _init_table(self):
        with self._lock, self._pool.connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS media (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    kind TEXT NOT NULL,
                    source_path TEXT NOT NULL UNIQUE,
                    parent_path TEXT NOT NULL,
                    square_preview_path TEXT,
                    fs_created_at TEXT,
                    fs_modified_at TEXT,
                    size_bytes INTEGER NOT NULL DEFAULT 0,
                    fingerprint TEXT,
                    content_id TEXT,
                    metadata TEXT
                )
            """)

    def _migrate_schema(self):
        """Add columns introduced after the first catalog layout."""
        with self._lock, self._pool.connection() as conn:
            columns = {row["name"] for row in conn.execute("PRAGMA table_info(media)").fetchall()}
            missing_cols = {
                "fingerprint": "TEXT",
                "content_id": "TEXT",
                "metadata": "TEXT",
            }
            for col, dtype in missing_cols.items():
                if col not in columns:
                    conn.execute(f"ALTER TABLE media ADD COLUMN {col} {dtype}")

    def _ensure_indices(self):
        with self._lock, self._pool.connection() as conn:
            conn.execute("CREATE INDEX IF NOT EXISTS idx_media_parent_path ON media(parent_path)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_media_content_id ON media(content_id)")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def all(self) -> List[MediaRecord]:
        with self._lock, self._pool.connection() as conn:
            rows = conn.execute("SELECT * FROM media ORDER BY id").fetchall()
        records = [self._map_row_to_record(row) for row in rows]
        _logger.debug("[REPO-ALL] Returned %d records from db=%s", len(records), self._pool.db_path)
        return records

    def get(self, id: int) -> Optional[MediaRecord]:
        with self._lock, self._pool.connection() as conn:
            row = conn.execute("SELECT * FROM media WHERE id = ?", (id,)).fetchone()
        return self._map_row_to_record(row) if row else None

    def get_by_path(self, path: Path) -> Optional[MediaRecord]:
        with self._lock, self._pool.connection() as conn:
            row = conn.execute(
                "SELECT * FROM media WHERE source_path = ?", (str(path),)
            ).fetchone()
        return self._map_row_to_record(row) if row else None

    def count(self) -> int:
        with self._lock, self._pool.connection() as conn:
            return conn.execute("SELECT COUNT(*) FROM media").fetchone()[0]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def upsert(self, record: MediaRecord) -> MediaRecord:
        source = str(record.source_path)
        with self._lock, self._pool.connection() as conn:
            existing = conn.execute(
                "SELECT id, fingerprint, square_preview_path FROM media WHERE source_path = ?",
                (source,),
            ).fetchone()

            preview = record.square_preview_path
            if existing is not None and preview is None:
                preview = self._surviving_preview(existing, record)

            values = (
                record.kind.value,
                source,
                str(record.parent_path),
                str(preview) if preview else None,
                self._encode_dt(record.fs_created_at),
                self._encode_dt(record.fs_modified_at),
                record.size_bytes,
                record.fingerprint,
                record.content_id,
                self._encode_metadata(record.metadata),
            )

            if existing is None:
                cursor = conn.execute(
                    """
                    INSERT INTO media
                    (kind, source_path, parent_path, square_preview_path, fs_created_at,
                     fs_modified_at, size_bytes, fingerprint, content_id, metadata)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    values,
                )
                media_id = cursor.lastrowid
                _logger.debug("[REPO-UPSERT] inserted id=%s path=%s", media_id, source)
            else:
                media_id = existing["id"]
                conn.execute(
                    """
                    UPDATE media SET
                        kind = ?, source_path = ?, parent_path = ?, square_preview_path = ?,
                        fs_created_at = ?, fs_modified_at = ?, size_bytes = ?,
                        fingerprint = ?, content_id = ?, metadata = ?
                    WHERE id = ?
                    """,
                    values + (media_id,),
                )
                _logger.debug("[REPO-UPSERT] updated id=%s path=%s", media_id, source)

        return dataclasses.replace(record, id=media_id, square_preview_path=preview)

    def add_preview(self, record: MediaRecord) -> None:
        if record.id is None:
            raise StorageError(f"Cannot store a preview for unsaved record {record.source_path}")

        preview = str(record.square_preview_path) if record.square_preview_path else None
        with self._lock, self._pool.connection() as conn:
            cursor = conn.execute(
                "UPDATE media SET square_preview_path = ?, metadata = ? WHERE id = ?",
                (preview, self._encode_metadata(record.metadata), record.id),
            )
            if cursor.rowcount == 0:
                # Raising inside the block rolls the transaction back.
                raise StorageError(f"Unknown media id {record.id}")
        _logger.debug("[REPO-PREVIEW] id=%s preview=%s", record.id, preview)

    def clear_preview(self, id: int) -> None:
        with self._lock, self._pool.connection() as conn:
            conn.execute("UPDATE media SET square_preview_path = NULL WHERE id = ?", (id,))

    def delete(self, id: int) -> None:
        with self._lock, self._pool.connection() as conn:
            conn.execute("DELETE FROM media WHERE id = ?", (id,))

    # ------------------------------------------------------------------
    # Mapping helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _surviving_preview(existing: sqlite3.Row, record: MediaRecord) -> Optional[Path]:
        """Return the stored preview if it still matches the scanned content."""

        stored = existing["square_preview_path"]
        if not stored:
            return None
        if record.fingerprint is not None and existing["fingerprint"] != record.fingerprint:
            _logger.info("Source of %s changed; dropping stale preview", record.source_path)
            return None
        if not Path(stored).exists():
            _logger.info("Preview %s vanished; it will be regenerated", stored)
            return None
        return Path(stored)

    @staticmethod
    def _encode_dt(value: Optional[datetime]) -> Optional[str]:
        return value.isoformat() if value else None

    @staticmethod
    def _decode_dt(value: Any) -> Optional[datetime]:
        if not isinstance(value, str) or not value:
            return None
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            return None

    def _encode_metadata(self, metadata: MediaMetadata) -> str:
        payload = dataclasses.asdict(metadata)
        for key in _DATETIME_FIELDS & payload.keys():
            payload[key] = self._encode_dt(payload[key])
        return json.dumps(payload)

    def _decode_metadata(self, kind: MediaKind, raw: Optional[str]) -> MediaMetadata:
        target = VideoMetadata if kind == MediaKind.VIDEO else PictureMetadata
        payload: Dict[str, Any] = {}
        if raw:
            try:
                decoded = json.loads(raw)
            except json.JSONDecodeError:
                _logger.warning("Ignoring unreadable metadata payload: %r", raw[:80])
                decoded = {}
            if isinstance(decoded, dict):
                payload = decoded

        known = {f.name for f in dataclasses.fields(target)}
        values = {key: value for key, value in payload.items() if key in known}
        for key in _DATETIME_FIELDS & values.keys():
            values[key] = self._decode_dt(values[key])
        return target(**values)

    def _map_row_to_record(self, row: sqlite3.Row) -> MediaRecord:
        try:
            kind = MediaKind(row["kind"])
        except ValueError as exc:
            raise StorageError(f"Corrupt catalog row {row['id']}: kind={row['kind']!r}") from exc

        preview = row["square_preview_path"]
        return MediaRecord(
            id=row["id"],
            kind=kind,
            source_path=Path(row["source_path"]),
            square_preview_path=Path(preview) if preview else None,
            fs_created_at=self._decode_dt(row["fs_created_at"]),
            fs_modified_at=self._decode_dt(row["fs_modified_at"]),
            size_bytes=row["size_bytes"] or 0,
            fingerprint=row["fingerprint"],
            metadata=self._decode_metadata(kind, row["metadata"]),
        )
