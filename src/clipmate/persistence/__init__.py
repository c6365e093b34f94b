"""Persistence layer for clipboard history."""

from .models import ClipboardItem, ContentType
from .database import ClipboardDatabase
from .history_store import HistoryStore

__all__ = [
    "ClipboardItem",
    "ContentType",
    "ClipboardDatabase",
    "HistoryStore",
]
