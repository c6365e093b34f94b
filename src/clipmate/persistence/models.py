"""Data models for persistence layer."""

import base64
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class ContentType(Enum):
    """Kind of content held by a clipboard item."""
    TEXT = "text"
    IMAGE = "image"


@dataclass(frozen=True)
class ClipboardItem:
    """Single clipboard history entry. Never mutated after creation."""

    id: int
    content_type: ContentType
    created_at: datetime
    text: Optional[str] = None
    image_data: Optional[bytes] = None

    @property
    def is_text(self) -> bool:
        return self.content_type is ContentType.TEXT

    @property
    def is_image(self) -> bool:
        return self.content_type is ContentType.IMAGE

    @property
    def content(self):
        """The text or PNG bytes, depending on content type."""
        return self.text if self.is_text else self.image_data

    def preview(self, max_length: int = 80) -> str:
        """
        Single-line summary for listings.

        Args:
            max_length: Maximum length of the returned string

        Returns:
            Collapsed text, or an image placeholder with its size
        """
        if self.is_image:
            size = len(self.image_data) if self.image_data else 0
            return f"[image {size} bytes]"
        collapsed = " ".join((self.text or "").split())
        if len(collapsed) > max_length:
            return collapsed[:max_length - 1] + "…"
        return collapsed

    def to_dict(self) -> dict:
        """
        Serialize to dictionary for JSON export.

        Returns:
            Dictionary representation; image bytes are base64 encoded
        """
        return {
            "id": self.id,
            "content_type": self.content_type.value,
            "text": self.text,
            "image_png_base64": base64.b64encode(self.image_data).decode("ascii") if self.image_data else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
