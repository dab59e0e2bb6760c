"""
Media Service

Uploaded images and videos are stored as immutable binary rows and
served back by id with a long-lived cache lifetime.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from menuhub.core.config import get_settings
from menuhub.models import Media
from menuhub.services.errors import MediaRejectedError, RangeNotSatisfiableError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/webp")
ALLOWED_VIDEO_TYPES = ("video/mp4",)
ALLOWED_MIME_TYPES = ALLOWED_IMAGE_TYPES + ALLOWED_VIDEO_TYPES

IMMUTABLE_CACHE_CONTROL = "public, max-age=31536000, immutable"


def validate_upload(mime_type: Optional[str], size: int) -> None:
    """
    Reject unsupported or oversized uploads.

    Raises:
        MediaRejectedError: With a user-facing message
    """
    if mime_type not in ALLOWED_MIME_TYPES:
        raise MediaRejectedError("Only JPEG, PNG, WebP images and MP4 videos are allowed")

    limit = get_settings().max_upload_bytes
    if size > limit:
        raise MediaRejectedError(f"File size must be less than {limit // (1024 * 1024)}MB")
    if size == 0:
        raise MediaRejectedError("File is empty")


async def read_upload(upload, limit: Optional[int] = None) -> bytes:
    """
    Read at most one byte past ``limit`` from an upload.

    That is enough for ``validate_upload`` to reject an oversized file
    without buffering all of it.
    """
    limit = limit or get_settings().max_upload_bytes
    return await upload.read(limit + 1)


async def create_media(session: AsyncSession, mime_type: str, data: bytes) -> Media:
    validate_upload(mime_type, len(data))

    media = Media(mime_type=mime_type, bytes=data, size=len(data))
    session.add(media)
    await session.commit()
    await session.refresh(media)

    logger.info(f"Media uploaded: {media.id} ({media.mime_type}, {media.size}B)")
    return media


async def get_media(session: AsyncSession, media_id: str) -> Optional[Media]:
    return await session.get(Media, media_id)


def media_headers(media: Media, *, cors: bool = False, ranges: bool = False) -> dict[str, str]:
    """
    Response headers for serving a media payload.

    ``ranges`` advertises byte ranges for video, which mobile players
    need before they start playback.
    """
    headers = {
        "Content-Type": media.mime_type,
        "Content-Length": str(media.size),
        "Cache-Control": IMMUTABLE_CACHE_CONTROL,
    }
    if cors:
        headers["Access-Control-Allow-Origin"] = "*"
        headers["Access-Control-Allow-Methods"] = "GET"
    if ranges and media.mime_type.startswith("video/"):
        headers["Accept-Ranges"] = "bytes"
    return headers


def parse_byte_range(header: Optional[str], size: int) -> Optional[tuple[int, int]]:
    """
    Parse a single ``Range: bytes=...`` header into an inclusive (start, end).

    Returns None when the whole payload should be sent instead: no header,
    another unit, several ranges, or a spec that does not parse.

    Raises:
        RangeNotSatisfiableError: If the range lies entirely past the payload
    """
    if not header:
        return None

    unit, _, spec = header.partition("=")
    if unit.strip().lower() != "bytes" or "," in spec:
        return None

    first, dash, last = spec.strip().partition("-")
    if not dash:
        return None
    first, last = first.strip(), last.strip()

    # bytes=-N: the last N bytes
    if not first:
        if not last.isdigit():
            return None
        suffix = int(last)
        if suffix == 0 or size == 0:
            raise RangeNotSatisfiableError(header)
        return max(size - suffix, 0), size - 1

    if not first.isdigit() or (last and not last.isdigit()):
        return None
    start = int(first)
    end = int(last) if last else size - 1
    if end < start:
        return None
    if start >= size:
        raise RangeNotSatisfiableError(header)
    return start, min(end, size - 1)
