"""Media upload and serving."""

import pytest

from menuhub.services.errors import MediaRejectedError, RangeNotSatisfiableError
from menuhub.services.media import (
    IMMUTABLE_CACHE_CONTROL,
    parse_byte_range,
    read_upload,
    validate_upload,
)
from tests.factories import add_restaurant

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
MP4_BYTES = b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 32


async def _upload(client, name, content, mime_type):
    return await client.post(
        "/api/admin/media/upload",
        files={"file": (name, content, mime_type)},
    )


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("mime_type", ["image/jpeg", "image/png", "image/webp", "video/mp4"])
def test_allowed_types(mime_type):
    validate_upload(mime_type, 1024)


@pytest.mark.parametrize("mime_type", ["image/gif", "application/pdf", None])
def test_rejected_types(mime_type):
    with pytest.raises(MediaRejectedError, match="Only JPEG, PNG, WebP images and MP4 videos"):
        validate_upload(mime_type, 1024)


def test_size_limit():
    with pytest.raises(MediaRejectedError, match="less than 4MB"):
        validate_upload("image/png", 4 * 1024 * 1024 + 1)
    validate_upload("image/png", 4 * 1024 * 1024)


def test_empty_file():
    with pytest.raises(MediaRejectedError, match="empty"):
        validate_upload("image/png", 0)


class RecordingUpload:
    def __init__(self, content):
        self.content = content
        self.requested = None

    async def read(self, size=-1):
        self.requested = size
        return self.content if size < 0 else self.content[:size]


async def test_read_upload_stops_one_byte_past_limit():
    upload = RecordingUpload(b"\x00" * 100)

    data = await read_upload(upload, limit=10)

    assert upload.requested == 11
    assert len(data) == 11
    with pytest.raises(MediaRejectedError, match="less than"):
        validate_upload("image/png", len(data))


async def test_read_upload_defaults_to_configured_limit():
    upload = RecordingUpload(PNG_BYTES)

    assert await read_upload(upload) == PNG_BYTES
    assert upload.requested == 4 * 1024 * 1024 + 1


# ---------------------------------------------------------------------------
# Byte ranges
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("header, expected", [
    ("bytes=0-3", (0, 3)),
    ("bytes=4-", (4, 9)),
    ("bytes=-3", (7, 9)),
    ("bytes=-50", (0, 9)),
    ("bytes=5-500", (5, 9)),
    ("bytes=9-9", (9, 9)),
])
def test_parse_byte_range(header, expected):
    assert parse_byte_range(header, 10) == expected


@pytest.mark.parametrize("header", [
    None, "", "items=0-3", "bytes=0-1,4-5", "bytes=abc", "bytes=3-1", "bytes=-", "bytes=x-3",
])
def test_parse_byte_range_falls_back_to_full_body(header):
    assert parse_byte_range(header, 10) is None


@pytest.mark.parametrize("header", ["bytes=10-", "bytes=20-30", "bytes=-0"])
def test_parse_byte_range_unsatisfiable(header):
    with pytest.raises(RangeNotSatisfiableError):
        parse_byte_range(header, 10)


# ---------------------------------------------------------------------------
# Upload + serve
# ---------------------------------------------------------------------------

async def test_upload_and_serve_image(admin_client):
    uploaded = await _upload(admin_client, "logo.png", PNG_BYTES, "image/png")

    assert uploaded.status_code == 200
    info = uploaded.json()
    assert info["mimeType"] == "image/png"
    assert info["size"] == len(PNG_BYTES)

    api = await admin_client.get(f"/api/media/{info['id']}")
    assert api.status_code == 200
    assert api.content == PNG_BYTES
    assert api.headers["content-type"] == "image/png"
    assert api.headers["cache-control"] == IMMUTABLE_CACHE_CONTROL
    assert api.headers["access-control-allow-origin"] == "*"

    asset = await admin_client.get(f"/assets/{info['id']}")
    assert asset.content == PNG_BYTES
    assert "accept-ranges" not in asset.headers


async def test_video_advertises_ranges_on_assets(admin_client):
    uploaded = await _upload(admin_client, "intro.mp4", MP4_BYTES, "video/mp4")
    media_id = uploaded.json()["id"]

    asset = await admin_client.get(f"/assets/{media_id}")
    api = await admin_client.get(f"/api/media/{media_id}")

    assert asset.headers["accept-ranges"] == "bytes"
    assert asset.headers["content-length"] == str(len(MP4_BYTES))
    assert "accept-ranges" not in api.headers


async def test_video_answers_byte_range(admin_client):
    uploaded = await _upload(admin_client, "intro.mp4", MP4_BYTES, "video/mp4")
    media_id = uploaded.json()["id"]

    head = await admin_client.get(f"/assets/{media_id}", headers={"Range": "bytes=0-3"})
    tail = await admin_client.get(f"/assets/{media_id}", headers={"Range": "bytes=-8"})

    assert head.status_code == 206
    assert head.content == MP4_BYTES[:4]
    assert head.headers["content-range"] == f"bytes 0-3/{len(MP4_BYTES)}"
    assert head.headers["content-length"] == "4"
    assert head.headers["content-type"] == "video/mp4"

    assert tail.status_code == 206
    assert tail.content == MP4_BYTES[-8:]
    assert tail.headers["content-range"] == (
        f"bytes {len(MP4_BYTES) - 8}-{len(MP4_BYTES) - 1}/{len(MP4_BYTES)}"
    )


async def test_video_range_past_end_is_unsatisfiable(admin_client):
    uploaded = await _upload(admin_client, "intro.mp4", MP4_BYTES, "video/mp4")
    media_id = uploaded.json()["id"]

    response = await admin_client.get(
        f"/assets/{media_id}", headers={"Range": f"bytes={len(MP4_BYTES)}-"}
    )

    assert response.status_code == 416
    assert response.headers["content-range"] == f"bytes */{len(MP4_BYTES)}"


async def test_image_ignores_range(admin_client):
    uploaded = await _upload(admin_client, "logo.png", PNG_BYTES, "image/png")
    media_id = uploaded.json()["id"]

    response = await admin_client.get(f"/assets/{media_id}", headers={"Range": "bytes=0-3"})

    assert response.status_code == 200
    assert response.content == PNG_BYTES
    assert "content-range" not in response.headers


async def test_upload_rejects_type(admin_client):
    response = await _upload(admin_client, "anim.gif", b"GIF89a", "image/gif")

    assert response.status_code == 400
    assert response.json() == {"error": "Only JPEG, PNG, WebP images and MP4 videos are allowed"}


async def test_upload_rejects_oversized(admin_client):
    response = await _upload(admin_client, "big.png", b"\x00" * (4 * 1024 * 1024 + 1), "image/png")

    assert response.status_code == 400
    assert response.json() == {"error": "File size must be less than 4MB"}


async def test_upload_without_file(admin_client):
    response = await admin_client.post("/api/admin/media/upload", data={"other": "x"})

    assert response.status_code == 400
    assert response.json() == {"error": "No file provided"}


async def test_upload_requires_admin(client):
    response = await _upload(client, "logo.png", PNG_BYTES, "image/png")

    assert response.status_code == 401


async def test_unknown_media(client):
    for path in ("/api/media/ghost", "/assets/ghost"):
        response = await client.get(path)
        assert response.status_code == 404
        assert response.text == "Media not found"


async def test_logo_used_on_welcome_page(admin_client, session_maker):
    await add_restaurant(session_maker)
    uploaded = await _upload(admin_client, "logo.png", PNG_BYTES, "image/png")
    media_id = uploaded.json()["id"]
    await admin_client.put("/api/admin/settings", json={"logoMediaId": media_id})

    page = await admin_client.get("/pizza-palace")
    detail = await admin_client.get("/api/restaurant/pizza-palace")

    assert f'src="/assets/{media_id}"' in page.text
    assert detail.json()["logo"] == {"id": media_id, "mimeType": "image/png", "size": len(PNG_BYTES)}
