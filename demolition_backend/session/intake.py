from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple

from demolition_backend.ai.helpers import bytes_to_data_url, resolve_media_type, verify_image
from demolition_backend.session.store import PendingImage, PreviewStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntakeResult:
    accepted: Tuple[PendingImage, ...] = ()   # images actually appended to the store
    dropped: int = 0                           # decoded but cut by the cap
    skipped: Tuple[str, ...] = ()             # filenames that failed to decode


async def decode_file(upload: Any) -> PendingImage:
    """
    Read one uploaded file and turn it into a PendingImage.

    ``upload`` is anything shaped like FastAPI's UploadFile: ``filename``,
    ``content_type`` and an async ``read()``.
    """
    data = await upload.read()
    if not data:
        raise ValueError("empty file")

    detected = await asyncio.to_thread(verify_image, data)
    media_type = resolve_media_type(getattr(upload, "content_type", None), detected)

    return PendingImage(
        id=uuid.uuid4().hex,
        filename=getattr(upload, "filename", None) or "image",
        media_type=media_type,
        content=data,
        preview=bytes_to_data_url(data, media_type),
    )


async def decode_files(selected: Sequence[Any]) -> Tuple[Tuple[PendingImage, ...], Tuple[str, ...]]:
    """Decode a batch concurrently; keep submission order and collect failures."""
    results = await asyncio.gather(
        *(decode_file(upload) for upload in selected),
        return_exceptions=True,
    )

    decoded = []
    skipped = []
    for upload, result in zip(selected, results):
        name = getattr(upload, "filename", None) or "image"
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logger.warning("Skipping unreadable file %r: %s", name, result)
            skipped.append(name)
        else:
            decoded.append(result)
    return tuple(decoded), tuple(skipped)


async def submit_files(store: PreviewStore, selected: Optional[Sequence[Any]]) -> IntakeResult:
    """Decode ``selected`` and append the results to ``store`` (first MAX_IMAGES kept)."""
    if not selected:
        return IntakeResult()

    decoded, skipped = await decode_files(selected)
    return append_decoded(store, decoded, skipped)


def append_decoded(
    store: PreviewStore,
    decoded: Tuple[PendingImage, ...],
    skipped: Tuple[str, ...] = (),
) -> IntakeResult:
    """Append an already decoded batch to ``store`` (first MAX_IMAGES kept)."""
    dropped = store.extend(decoded)
    if dropped:
        logger.info("Image limit reached, dropped %d of %d new image(s)", dropped, len(decoded))

    return IntakeResult(
        accepted=decoded[: len(decoded) - dropped],
        dropped=dropped,
        skipped=skipped,
    )
