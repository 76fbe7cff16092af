from .sqlite_media_repository import SQLiteMediaRepository

__all__ = ["SQLiteMediaRepository"]
