"""
Pytest configuration and fixtures for facetagger tests
"""

import json
from io import BytesIO

import httpx
import pytest
from PIL import Image

from facetagger.config import Settings
from facetagger.db import close_db, init_db
from facetagger.services.storage import LocalStorage

PROVIDER_HOST = "detect.test"
TELEGRAM_HOST = "tg.test"


def make_jpeg(width: int, height: int, color=(200, 150, 120)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="JPEG")
    return buf.getvalue()


def make_png(width: int, height: int) -> bytes:
    buf = BytesIO()
    Image.new("RGBA", (width, height), (10, 20, 30, 255)).save(buf, format="PNG")
    return buf.getvalue()


def provider_payload(*boxes, provider="amazon", status="success") -> dict:
    items = [
        {
            "confidence": 0.99,
            "bounding_box": {"x_min": x0, "x_max": x1, "y_min": y0, "y_max": y1},
        }
        for (x0, x1, y0, y1) in boxes
    ]
    return {provider: {"status": status, "items": items}}


class FakeHttp:
    """MockTransport handler standing in for the detection provider and Telegram."""

    def __init__(self):
        self.provider_requests: list[httpx.Request] = []
        self.provider_status = 200
        self.provider_body: bytes = json.dumps(provider_payload()).encode()
        self.telegram_calls: list[tuple[str, dict]] = []
        self.failing_photos: set[str] = set()

    def set_faces(self, *boxes):
        self.provider_body = json.dumps(provider_payload(*boxes)).encode()

    def sent(self, method: str) -> list[dict]:
        return [payload for m, payload in self.telegram_calls if m == method]

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == PROVIDER_HOST:
            self.provider_requests.append(request)
            return httpx.Response(self.provider_status, content=self.provider_body)
        if request.url.host == TELEGRAM_HOST:
            method = request.url.path.rsplit("/", 1)[-1]
            payload = json.loads(request.content)
            self.telegram_calls.append((method, payload))
            if method == "sendPhoto" and payload.get("photo") in self.failing_photos:
                return httpx.Response(400, json={"ok": False, "description": "Bad Request"})
            return httpx.Response(200, json={"ok": True, "result": {}})
        return httpx.Response(404)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        APP_ENV="test",
        DATABASE_URL="sqlite://:memory:",
        STORAGE_DIR=str(tmp_path / "storage"),
        PUBLIC_BASE_URL="https://gw.test",
        DETECTION_API_URL=f"https://{PROVIDER_HOST}/v2/image/face_detection",
        DETECTION_API_TOKEN="provider-token",
        TELEGRAM_API_URL=f"https://{TELEGRAM_HOST}",
        TELEGRAM_BOT_TOKEN="bot-token",
        JOBS_BACKEND="inline",
        METRICS_ENABLED=True,
    )


@pytest.fixture
def storage(settings) -> LocalStorage:
    return LocalStorage.from_settings(settings)


@pytest.fixture
def fake_http() -> FakeHttp:
    return FakeHttp()


@pytest.fixture
async def http_client(fake_http):
    client = httpx.AsyncClient(transport=httpx.MockTransport(fake_http.handler))
    try:
        yield client
    finally:
        await client.aclose()


@pytest.fixture(scope="function")
async def db_setup(settings):
    """Initialize a fresh in-memory SQLite database for each test."""
    await init_db(settings)
    try:
        yield
    finally:
        await close_db()
