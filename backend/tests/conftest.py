import io
import json
import re
from urllib.parse import parse_qs

import httpx
import pytest
from fastapi.testclient import TestClient
from PIL import Image
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from blogdesk.config import settings
from blogdesk.database import Base, get_db
from blogdesk.main import app
from blogdesk.models.user import User
from blogdesk.services.asset_store import CloudinaryAssetStore, get_asset_store
from blogdesk.services.auth_service import hash_password

TEST_DB_URL = "sqlite:///./test_blogdesk.db"
TEST_PASSWORD = "password123"

engine = create_engine(TEST_DB_URL, connect_args={"check_same_thread": False})
TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


class FakeCloudinary:
    """Cloudinary upload/destroy 엔드포인트를 흉내 내는 httpx MockTransport 핸들러."""

    def __init__(self):
        self.uploaded: list[str] = []
        self.destroyed: list[str] = []
        self.fail_upload_names: set[str] = set()
        self.fail_destroy_ids: set[str] = set()
        self.destroy_payload = {"result": "ok"}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = request.read()
        if request.url.path.endswith("/image/upload"):
            match = re.search(rb'name="public_id"\r\n\r\n([^\r]+)', body)
            public_id = match.group(1).decode() if match else "unknown"
            if any(name in public_id for name in self.fail_upload_names):
                return httpx.Response(500, json={"error": {"message": "upload failed"}})
            stored_id = f"{settings.CLOUDINARY_FOLDER}/{public_id}"
            self.uploaded.append(stored_id)
            return httpx.Response(
                200,
                json={
                    "public_id": stored_id,
                    "secure_url": f"https://res.cloudinary.test/{stored_id}.jpg",
                },
            )
        if request.url.path.endswith("/image/destroy"):
            public_id = parse_qs(body.decode())["public_id"][0]
            if public_id in self.fail_destroy_ids:
                return httpx.Response(500, json={"error": {"message": "destroy failed"}})
            self.destroyed.append(public_id)
            return httpx.Response(200, json=self.destroy_payload)
        return httpx.Response(404, content=json.dumps({"error": "unknown endpoint"}))


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def cloudinary():
    return FakeCloudinary()


@pytest.fixture
def asset_store(cloudinary):
    store = CloudinaryAssetStore(settings, client=httpx.AsyncClient(transport=httpx.MockTransport(cloudinary)))
    app.dependency_overrides[get_asset_store] = lambda: store
    yield store
    app.dependency_overrides.pop(get_asset_store, None)


@pytest.fixture
def client(asset_store):
    return TestClient(app)


@pytest.fixture
def seed_users(db):
    users = {
        "admin": User(username="admin", email="admin@example.com", role="admin"),
        "admin2": User(username="admin2", email="admin2@example.com", role="admin"),
        "employee": User(username="kim", email="kim@example.com", role="employee"),
        "employee2": User(username="lee", email="lee@example.com", role="employee"),
    }
    password_hash = hash_password(TEST_PASSWORD)
    for u in users.values():
        u.password_hash = password_hash
        db.add(u)
    db.commit()
    for u in users.values():
        db.refresh(u)
    return users


def get_token(client, email: str) -> str:
    resp = client.post("/api/auth/login", json={"email": email, "password": TEST_PASSWORD})
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]["token"]


def auth_headers(client, email: str) -> dict:
    return {"Authorization": f"Bearer {get_token(client, email)}"}


def make_image_bytes(size=(64, 48), fmt="JPEG", color=(200, 30, 30)) -> bytes:
    mode = "RGBA" if fmt == "PNG" else "RGB"
    fill = color + (255,) if mode == "RGBA" else color
    buffer = io.BytesIO()
    Image.new(mode, size, fill).save(buffer, format=fmt)
    return buffer.getvalue()


def create_post(client, headers, title="First post", **extra) -> dict:
    resp = client.post("/api/posts", json={"title": title, **extra}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]
