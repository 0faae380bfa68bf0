"""Test Post Images 동작과 회귀 시나리오를 검증하는 자동화 테스트입니다."""

from fastapi.testclient import TestClient
from sqlalchemy.exc import SQLAlchemyError

from blogdesk.config import settings
from blogdesk.main import app
from blogdesk.models.post import MAX_IMAGE_NAME_LENGTH, PostImage
from blogdesk.models.post_history import PostHistory
from blogdesk.services import history_service
from blogdesk.services.image_upload_service import ImageUploadItem, resolve_image_name
from tests.conftest import auth_headers, create_post, make_image_bytes


def _upload(client, post_id, headers, files, names=None):
    data = {"image_names": names} if names is not None else None
    return client.post(f"/api/posts/{post_id}/images", files=files, data=data, headers=headers)


def _jpeg(filename="photo.jpg", **kwargs):
    return ("images", (filename, make_image_bytes(**kwargs), "image/jpeg"))


def test_partial_batch_keeps_successes_in_order(client, db, seed_users, cloudinary):
    headers = auth_headers(client, "kim@example.com")
    post = create_post(client, headers)
    files = [
        _jpeg("one.jpg"),
        _jpeg("two.jpg"),
        ("images", ("three.jpg", b"definitely not an image", "image/jpeg")),
        _jpeg("four.jpg"),
        ("images", ("five.png", make_image_bytes(fmt="PNG"), "image/png")),
    ]

    resp = _upload(client, post["post_id"], headers, files)
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["success"] is True
    data = body["data"]
    assert data["uploaded_count"] == 4
    assert data["failed_count"] == 1
    assert data["total_count"] == 5
    assert [img["name"] for img in data["images"]] == ["one", "two", "four", "five"]
    assert data["failures"][0]["index"] == 3
    assert data["failures"][0]["name"] == "three"
    assert data["failures"][0]["reason"]

    assert db.query(PostImage).filter(PostImage.post_id == post["post_id"]).count() == 4
    assert db.query(PostHistory).filter(PostHistory.post_id == post["post_id"]).count() == 2
    assert len(cloudinary.uploaded) == 4

    detail = client.get(f"/api/posts/{post['post_id']}").json()["data"]
    assert [img["name"] for img in detail["images"]] == ["one", "two", "four", "five"]

    history = client.get(f"/api/posts/{post['post_id']}/history").json()["data"]
    assert history[0]["change_type"] == "updated"
    assert [img["name"] for img in history[0]["images"]] == ["one", "two", "four", "five"]


def test_all_items_failing_is_soft_failure(client, db, seed_users):
    headers = auth_headers(client, "kim@example.com")
    post = create_post(client, headers)
    files = [
        ("images", ("a.jpg", b"garbage-a", "image/jpeg")),
        ("images", ("b.jpg", b"garbage-b", "image/jpeg")),
    ]

    resp = _upload(client, post["post_id"], headers, files)
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is False
    assert body["data"]["uploaded_count"] == 0
    assert body["data"]["failed_count"] == 2
    assert body["data"]["total_count"] == 2

    assert db.query(PostImage).filter(PostImage.post_id == post["post_id"]).count() == 0
    assert db.query(PostHistory).filter(PostHistory.post_id == post["post_id"]).count() == 1


def test_upstream_failure_is_reported_per_item(client, seed_users, cloudinary):
    headers = auth_headers(client, "kim@example.com")
    post = create_post(client, headers)
    cloudinary.fail_upload_names.add("broken")

    resp = _upload(
        client,
        post["post_id"],
        headers,
        [_jpeg("a.jpg"), _jpeg("b.jpg")],
        names=["fine", "broken shot"],
    )
    data = resp.json()["data"]
    assert resp.json()["success"] is True
    assert [img["name"] for img in data["images"]] == ["fine"]
    assert data["failures"][0]["name"] == "broken shot"
    assert "업로드" in data["failures"][0]["reason"]


def test_image_naming_and_dimensions(client, seed_users, cloudinary):
    headers = auth_headers(client, "kim@example.com")
    post = create_post(client, headers)
    files = [
        _jpeg("ignored.jpg", size=(3200, 1200)),
        _jpeg("holiday.final.jpg"),
        _jpeg("noext"),
    ]

    resp = _upload(client, post["post_id"], headers, files, names=["  Cover  "])
    images = resp.json()["data"]["images"]
    assert [img["name"] for img in images] == ["Cover", "holiday.final", "noext"]
    assert (images[0]["width"], images[0]["height"]) == (1600, 600)
    assert (images[1]["width"], images[1]["height"]) == (64, 48)
    assert images[0]["public_id"].startswith(f"{settings.CLOUDINARY_FOLDER}/blog_")
    assert images[0]["public_id"].endswith("_Cover")
    assert images[0]["url"].startswith("https://")


def test_second_batch_appends_after_existing_images(client, seed_users):
    headers = auth_headers(client, "kim@example.com")
    post = create_post(client, headers)
    _upload(client, post["post_id"], headers, [_jpeg("first.jpg")])
    _upload(client, post["post_id"], headers, [_jpeg("second.jpg"), _jpeg("third.jpg")])

    detail = client.get(f"/api/posts/{post['post_id']}").json()["data"]
    assert [img["name"] for img in detail["images"]] == ["first", "second", "third"]


def test_resolve_image_name_fallbacks():
    assert resolve_image_name(ImageUploadItem(data=b"x", filename="a.png", supplied_name=" Named "), 1) == "Named"
    assert resolve_image_name(ImageUploadItem(data=b"x", filename="a.png", supplied_name="   "), 1) == "a"
    assert resolve_image_name(ImageUploadItem(data=b"x", filename=None), 4) == "image_4"
    assert resolve_image_name(ImageUploadItem(data=b"x", filename=".png"), 2) == "image_2"


def test_empty_file_rejects_whole_batch(client, db, seed_users, cloudinary):
    headers = auth_headers(client, "kim@example.com")
    post = create_post(client, headers)
    files = [_jpeg("ok.jpg"), ("images", ("empty.jpg", b"", "image/jpeg"))]

    resp = _upload(client, post["post_id"], headers, files)
    assert resp.status_code == 400
    assert resp.json()["success"] is False
    assert cloudinary.uploaded == []
    assert db.query(PostImage).filter(PostImage.post_id == post["post_id"]).count() == 0


def test_request_shape_errors(client, seed_users, monkeypatch):
    headers = auth_headers(client, "kim@example.com")
    post = create_post(client, headers)
    url = f"/api/posts/{post['post_id']}/images"

    assert client.post(url, json={"images": []}, headers=headers).status_code == 400
    names_only = b'--xyz\r\nContent-Disposition: form-data; name="image_names"\r\n\r\nx\r\n--xyz--\r\n'
    resp = client.post(
        url,
        content=names_only,
        headers={**headers, "Content-Type": "multipart/form-data; boundary=xyz"},
    )
    assert resp.status_code == 400
    not_image = [("images", ("notes.txt", b"hello", "text/plain"))]
    assert _upload(client, post["post_id"], headers, not_image).status_code == 400

    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE", 10)
    assert _upload(client, post["post_id"], headers, [_jpeg("big.jpg")]).status_code == 400

    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE", 15 * 1024 * 1024)
    monkeypatch.setattr(settings, "MAX_UPLOAD_FILES", 1)
    assert _upload(client, post["post_id"], headers, [_jpeg("a.jpg"), _jpeg("b.jpg")]).status_code == 400


def test_upload_permissions(client, seed_users):
    owner = auth_headers(client, "kim@example.com")
    other = auth_headers(client, "lee@example.com")
    admin = auth_headers(client, "admin@example.com")
    post = create_post(client, owner)

    assert client.post(f"/api/posts/{post['post_id']}/images", files=[_jpeg()]).status_code == 401
    assert _upload(client, post["post_id"], other, [_jpeg()]).status_code == 403
    assert _upload(client, 9999, admin, [_jpeg()]).status_code == 404
    assert _upload(client, post["post_id"], admin, [_jpeg()]).status_code == 200


def test_rename_image(client, seed_users):
    headers = auth_headers(client, "kim@example.com")
    post = create_post(client, headers)
    image = _upload(client, post["post_id"], headers, [_jpeg("old.jpg")]).json()["data"]["images"][0]
    url = f"/api/posts/{post['post_id']}/images/{image['image_id']}"

    resp = client.put(url, json={"name": "  New name "}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["name"] == "New name"

    assert client.put(url, json={"name": "   "}, headers=headers).status_code == 400
    missing = f"/api/posts/{post['post_id']}/images/9999"
    assert client.put(missing, json={"name": "x"}, headers=headers).status_code == 404

    other = auth_headers(client, "lee@example.com")
    assert client.put(url, json={"name": "x"}, headers=other).status_code == 403

    history = client.get(f"/api/posts/{post['post_id']}/history").json()["data"]
    assert [h["change_type"] for h in history] == ["updated", "updated", "created"]
    assert history[0]["images"][0]["name"] == "New name"


def test_remove_image_survives_remote_delete_failure(client, db, seed_users, cloudinary):
    headers = auth_headers(client, "kim@example.com")
    post = create_post(client, headers)
    images = _upload(client, post["post_id"], headers, [_jpeg("a.jpg"), _jpeg("b.jpg")]).json()["data"]["images"]
    cloudinary.fail_destroy_ids.add(images[0]["public_id"])

    resp = client.delete(f"/api/posts/{post['post_id']}/images/{images[0]['image_id']}", headers=headers)
    assert resp.status_code == 200
    assert [img["name"] for img in resp.json()["data"]["images"]] == ["b"]
    assert cloudinary.destroyed == []

    resp = client.delete(f"/api/posts/{post['post_id']}/images/{images[1]['image_id']}", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["images"] == []
    assert cloudinary.destroyed == [images[1]["public_id"]]

    assert db.query(PostHistory).filter(PostHistory.post_id == post["post_id"]).count() == 4
    missing = client.delete(f"/api/posts/{post['post_id']}/images/{images[0]['image_id']}", headers=headers)
    assert missing.status_code == 404


def test_remove_image_tolerates_unexpected_destroy_body(client, db, seed_users, cloudinary):
    headers = auth_headers(client, "kim@example.com")
    post = create_post(client, headers)
    image = _upload(client, post["post_id"], headers, [_jpeg("a.jpg")]).json()["data"]["images"][0]
    cloudinary.destroy_payload = ["unexpected"]

    resp = client.delete(f"/api/posts/{post['post_id']}/images/{image['image_id']}", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["images"] == []
    assert db.query(PostImage).filter(PostImage.post_id == post["post_id"]).count() == 0
    assert db.query(PostHistory).filter(PostHistory.post_id == post["post_id"]).count() == 3


def test_non_author_employee_cannot_remove_image(client, db, seed_users, cloudinary):
    owner = auth_headers(client, "kim@example.com")
    other = auth_headers(client, "lee@example.com")
    post = create_post(client, owner)
    image = _upload(client, post["post_id"], owner, [_jpeg("keep.jpg")]).json()["data"]["images"][0]
    history_before = db.query(PostHistory).filter(PostHistory.post_id == post["post_id"]).count()

    resp = client.delete(f"/api/posts/{post['post_id']}/images/{image['image_id']}", headers=other)
    assert resp.status_code == 403
    assert resp.json()["success"] is False

    detail = client.get(f"/api/posts/{post['post_id']}").json()["data"]
    assert [img["image_id"] for img in detail["images"]] == [image["image_id"]]
    assert cloudinary.destroyed == []
    assert db.query(PostHistory).filter(PostHistory.post_id == post["post_id"]).count() == history_before


def test_employee_author_manages_own_images(client, seed_users, cloudinary):
    headers = auth_headers(client, "lee@example.com")
    post = create_post(client, headers)
    images = _upload(client, post["post_id"], headers, [_jpeg("a.jpg"), _jpeg("b.jpg")]).json()["data"]["images"]

    renamed = client.put(
        f"/api/posts/{post['post_id']}/images/{images[0]['image_id']}",
        json={"name": "renamed"},
        headers=headers,
    )
    assert renamed.status_code == 200

    removed = client.delete(f"/api/posts/{post['post_id']}/images/{images[1]['image_id']}", headers=headers)
    assert removed.status_code == 200
    assert [img["name"] for img in removed.json()["data"]["images"]] == ["renamed"]
    assert cloudinary.destroyed == [images[1]["public_id"]]


def test_long_image_names_are_capped(client, seed_users):
    headers = auth_headers(client, "kim@example.com")
    post = create_post(client, headers)

    resp = _upload(
        client,
        post["post_id"],
        headers,
        [_jpeg("a.jpg"), _jpeg("f" * 300 + ".jpg")],
        names=["n" * 300],
    )
    assert resp.status_code == 200
    names = [img["name"] for img in resp.json()["data"]["images"]]
    assert names == ["n" * MAX_IMAGE_NAME_LENGTH, "f" * MAX_IMAGE_NAME_LENGTH]

    image_id = resp.json()["data"]["images"][0]["image_id"]
    rename = client.put(
        f"/api/posts/{post['post_id']}/images/{image_id}",
        json={"name": "n" * MAX_IMAGE_NAME_LENGTH},
        headers=headers,
    )
    assert rename.status_code == 200


def test_failed_persist_removes_uploaded_assets(client, db, seed_users, cloudinary, monkeypatch):
    headers = auth_headers(client, "kim@example.com")
    post = create_post(client, headers)

    def _broken_append(*args, **kwargs):
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(history_service, "append_history", _broken_append)
    unsafe_client = TestClient(app, raise_server_exceptions=False)
    resp = _upload(unsafe_client, post["post_id"], headers, [_jpeg("a.jpg"), _jpeg("b.jpg")])

    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": "Internal server error"}
    assert len(cloudinary.uploaded) == 2
    assert sorted(cloudinary.destroyed) == sorted(cloudinary.uploaded)
    assert db.query(PostImage).filter(PostImage.post_id == post["post_id"]).count() == 0
