from __future__ import annotations

import base64
from io import BytesIO

from PIL import Image

GENERIC_MEDIA_TYPES = {"", "application/octet-stream"}


def bytes_to_data_url(data: bytes, media_type: str) -> str:
    """Encode raw bytes as a base64 data URL, e.g. ``data:image/png;base64,...``."""
    encoded = base64.b64encode(data).decode("utf-8")
    return f"data:{media_type};base64,{encoded}"


def data_url_payload(data_url: str) -> str:
    """Return the base64 part of a data URL (everything after the first comma)."""
    _, sep, payload = data_url.partition(",")
    if not sep:
        raise ValueError("Not a data URL: missing ',' separator")
    return payload


def verify_image(data: bytes) -> str:
    """
    Check that ``data`` decodes as an image and return its MIME type.

    Raises whatever Pillow raises for truncated or unknown files.
    """
    with Image.open(BytesIO(data)) as img:
        fmt = img.format
        img.verify()
    return Image.MIME.get(fmt or "", "application/octet-stream")


def resolve_media_type(declared: str | None, detected: str) -> str:
    """Prefer the declared content type unless it is missing or generic."""
    declared = (declared or "").split(";")[0].strip().lower()
    if declared in GENERIC_MEDIA_TYPES:
        return detected
    return declared
