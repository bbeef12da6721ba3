"""
Tests del helper de subida de imágenes
"""
import json
import re
import time

import httpx
import pytest

from petmanager.client.backend import BackendClient, Session, SessionUser
from petmanager.client.errors import AuthenticationError, ImageValidationError
from petmanager.client.images import ImageFile, ImageUploader, validate_image

BASE_URL = "http://backend.test"
MiB = 1024 * 1024


class RecordingNotifier:
    def __init__(self):
        self.messages = []

    def success(self, message):
        self.messages.append(("success", message))

    def error(self, message):
        self.messages.append(("error", message))


@pytest.fixture
def seen():
    return []


@pytest.fixture
async def backend(seen):
    def handler(request):
        seen.append(request)
        if request.method == "POST":
            path = request.url.path.split("/pet-images/", 1)[1]
            return httpx.Response(200, json={"path": path, "key": f"pet-images/{path}"})
        return httpx.Response(200, json=[])

    client = BackendClient(base_url=BASE_URL, http=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    yield client
    await client.aclose()


async def sign_in(backend):
    await backend.auth.set_session(Session(
        access_token="token", expires_in=3600, expires_at=time.time() + 3600,
        user=SessionUser(id="user-1"),
    ))


@pytest.mark.parametrize("content_type", ["text/plain", "application/pdf", ""])
def test_validate_rejects_non_images(content_type):
    with pytest.raises(ImageValidationError, match="Please select an image file"):
        validate_image(ImageFile("file.png", content_type, b"x"))


def test_validate_size_limit():
    validate_image(ImageFile("ok.png", "image/png", b"\x00" * (5 * MiB)))
    with pytest.raises(ImageValidationError, match="less than 5MB"):
        validate_image(ImageFile("big.png", "image/png", b"\x00" * (5 * MiB + 1)))


def test_extension():
    assert ImageFile("dog.photo.JPG", "image/jpeg", b"").extension == "JPG"
    assert ImageFile("noext", "image/png", b"").extension == "noext"


def test_from_path(tmp_path):
    photo = tmp_path / "luna.jpg"
    photo.write_bytes(b"\xff\xd8jpeg")

    image = ImageFile.from_path(str(photo))
    assert image.name == "luna.jpg"
    assert image.content_type == "image/jpeg"
    assert image.data == b"\xff\xd8jpeg"
    assert image.extension == "jpg"

    unknown = tmp_path / "blob"
    unknown.write_bytes(b"x")
    assert ImageFile.from_path(str(unknown)).content_type == "application/octet-stream"
    validate_image(ImageFile.from_path(str(unknown), "image/png"))


async def test_rejected_files_make_no_calls(backend, seen):
    await sign_in(backend)
    uploader = ImageUploader(backend)
    with pytest.raises(ImageValidationError):
        await uploader.upload(ImageFile("a.txt", "text/plain", b"x"))
    with pytest.raises(ImageValidationError):
        await uploader.upload(ImageFile("a.png", "image/png", b"\x00" * (5 * MiB + 1)))
    assert seen == []


async def test_upload_requires_session(backend, seen):
    with pytest.raises(AuthenticationError):
        await ImageUploader(backend).upload(ImageFile("a.png", "image/png", b"x"))
    assert seen == []


async def test_upload_path_and_headers(backend, seen):
    await sign_in(backend)
    url = await ImageUploader(backend).upload(ImageFile("max.png", "image/png", b"\x89PNG"))

    assert len(seen) == 1
    request = seen[0]
    path = request.url.path.split("/pet-images/", 1)[1]
    assert re.fullmatch(r"user-1/\d{13}\.png", path)
    assert request.headers["cache-control"] == "3600"
    assert request.headers["x-upsert"] == "false"
    assert request.headers["content-type"] == "image/png"
    assert request.content == b"\x89PNG"
    assert url == f"{BASE_URL}/storage/v1/object/public/pet-images/{path}"


async def test_select_file_notifies(backend, seen):
    await sign_in(backend)
    notifier = RecordingNotifier()
    uploader = ImageUploader(backend, notifier)
    changed = []

    assert await uploader.select_file(ImageFile("a.txt", "text/plain", b"x"), changed.append) is None
    url = await uploader.select_file(ImageFile("a.png", "image/png", b"x"), changed.append)

    assert changed == [url]
    assert notifier.messages == [
        ("error", "Please select an image file"),
        ("success", "Image uploaded successfully!"),
    ]


async def test_select_file_hides_backend_errors():
    def handler(request):
        return httpx.Response(409, json={"detail": "The resource already exists"})

    backend = BackendClient(base_url=BASE_URL, http=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    await sign_in(backend)
    notifier = RecordingNotifier()

    result = await ImageUploader(backend, notifier).select_file(
        ImageFile("a.png", "image/png", b"x"), lambda url: None
    )
    assert result is None
    assert notifier.messages == [("error", "Failed to upload image")]
    await backend.aclose()


async def test_remove_image(backend, seen):
    await sign_in(backend)
    notifier = RecordingNotifier()
    uploader = ImageUploader(backend, notifier)
    cleared = []

    url = f"{BASE_URL}/storage/v1/object/public/pet-images/user-1/1700000000000.png"
    assert await uploader.remove_image(url, lambda: cleared.append(True))

    assert json.loads(seen[0].content) == {"prefixes": ["user-1/1700000000000.png"]}
    assert cleared == [True]
    assert notifier.messages == [("success", "Image removed successfully!")]


async def test_remove_without_bucket_segment(backend, seen):
    await sign_in(backend)
    assert await ImageUploader(backend).remove("https://images.example.com/x.png") is False
    assert seen == []
