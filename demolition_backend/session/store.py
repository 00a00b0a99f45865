from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Tuple

from demolition_backend.config import MAX_IMAGES


@dataclass(frozen=True)
class PendingImage:
    id: str
    filename: str
    media_type: str
    content: bytes              # original file bytes
    preview: str                # base64 data URL, displayable and re-sendable

    def to_dict(self) -> dict:
        # content is already carried by preview
        return {
            "id": self.id,
            "filename": self.filename,
            "media_type": self.media_type,
            "preview": self.preview,
        }


class PreviewStore:
    """Ordered collection of pending images, capped at MAX_IMAGES."""

    def __init__(self, images: Iterable[PendingImage] = ()):
        self._images: List[PendingImage] = list(images)[:MAX_IMAGES]

    @property
    def images(self) -> Tuple[PendingImage, ...]:
        return tuple(self._images)

    def __len__(self) -> int:
        return len(self._images)

    @property
    def is_full(self) -> bool:
        return len(self._images) >= MAX_IMAGES

    def extend(self, new_images: Iterable[PendingImage]) -> int:
        """Append in order, keep the oldest MAX_IMAGES, return how many were dropped."""
        combined = self._images + list(new_images)
        self._images = combined[:MAX_IMAGES]
        return len(combined) - len(self._images)

    def remove(self, image_id: str) -> Tuple[PendingImage, ...]:
        """Drop the image with ``image_id``; unknown ids are a no-op."""
        self._images = [img for img in self._images if img.id != image_id]
        return self.images
