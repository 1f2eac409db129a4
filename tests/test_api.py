import base64

from fastapi.testclient import TestClient

from imagekeeper.domain.collection import NewCollection
from imagekeeper.domain.image import NewImage
from imagekeeper.repository import Repository
from tests.fakes import FakeKeyValueStore


def test_health_does_not_require_credentials(test_client: TestClient) -> None:
    test_client.auth = None
    response = test_client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_unauthorized_access_without_credentials(test_client: TestClient) -> None:
    """Test that API endpoints require authentication."""
    test_client.auth = None

    response = test_client.get("/api/images")
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Basic"

    response = test_client.get("/api/collections")
    assert response.status_code == 401


def test_unauthorized_access_with_wrong_credentials(test_client: TestClient) -> None:
    test_client.auth = ("wrong", "credentials")

    response = test_client.get("/api/images")
    assert response.status_code == 401
    assert "Incorrect username or password" in response.text


def test_upload_images(test_client: TestClient, repository: Repository) -> None:
    """Test that uploaded images are stored and non-images are skipped."""
    response = test_client.post(
        "/api/images",
        files=[
            ("files", ("sunset.png", b"png bytes", "image/png")),
            ("files", ("notes.txt", b"just text", "text/plain")),
            ("files", ("city.night.jpg", b"jpg bytes", "image/jpeg")),
        ],
    )

    assert response.status_code == 201
    body = response.json()
    assert [image["name"] for image in body["images"]] == ["sunset", "city.night"]
    assert body["skipped"] == ["notes.txt"]

    stored = repository.list_images()
    assert [image.name for image in stored] == ["sunset", "city.night"]
    assert stored[0].file_size == len(b"png bytes")
    assert stored[0].url == "data:image/png;base64," + base64.b64encode(b"png bytes").decode()


def test_add_image_by_url(test_client: TestClient) -> None:
    response = test_client.post(
        "/api/images/url", json={"name": "Remote", "url": "https://example.com/r.jpg"}
    )

    assert response.status_code == 201
    assert response.json()["name"] == "Remote"
    assert response.json()["collections"] == []


def test_add_image_rejects_unknown_fields(test_client: TestClient) -> None:
    response = test_client.post(
        "/api/images/url", json={"url": "https://example.com/r.jpg", "id": "chosen-by-client"}
    )

    assert response.status_code == 422


def test_list_images_with_search_and_sort(test_client: TestClient, repository: Repository) -> None:
    """Test that listing applies the search query and the sort mode."""
    repository.add_image(NewImage(name="beach day", url="u1"))
    repository.add_image(NewImage(name="Mountain", url="u2"))
    repository.add_image(NewImage(name="Beach night", url="u3"))

    response = test_client.get("/api/images", params={"q": "BEACH", "sort": "newest"})

    assert response.status_code == 200
    assert [image["url"] for image in response.json()] == ["u3", "u1"]


def test_get_image_not_found(test_client: TestClient) -> None:
    response = test_client.get("/api/images/missing")

    assert response.status_code == 404
    assert "Image not found" in response.text


def test_edit_image_reconciles_collections(test_client: TestClient, repository: Repository) -> None:
    """Test that an edit applies field changes and syncs memberships on both sides."""
    image = repository.add_image(NewImage(name="Harbour", url="u1"))
    old = repository.add_collection(NewCollection(name="Old"))
    new = repository.add_collection(NewCollection(name="New"))
    repository.add_image_to_collection(image.id, old.id)

    response = test_client.patch(
        f"/api/images/{image.id}",
        json={"description": "Boats at dawn", "collections": [new.id, "missing"]},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["description"] == "Boats at dawn"
    assert body["name"] == "Harbour"
    assert body["collections"] == [new.id]
    assert repository.get_collection(old.id).images == []
    assert repository.get_collection(new.id).images == [image.id]


def test_edit_image_not_found(test_client: TestClient) -> None:
    response = test_client.patch("/api/images/missing", json={"description": "x"})

    assert response.status_code == 404


def test_delete_image(test_client: TestClient, repository: Repository) -> None:
    image = repository.add_image(NewImage(name="Gone", url="u1"))
    collection = repository.add_collection(NewCollection(name="Trip"))
    repository.add_image_to_collection(image.id, collection.id)

    response = test_client.delete(f"/api/images/{image.id}")
    assert response.status_code == 204
    assert repository.get_collection(collection.id).images == []

    response = test_client.delete(f"/api/images/{image.id}")
    assert response.status_code == 404


def test_create_collection(test_client: TestClient) -> None:
    response = test_client.post(
        "/api/collections", json={"name": " Trip ", "description": "Summer"}
    )

    assert response.status_code == 201
    body = response.json()
    assert body["name"] == "Trip"
    assert body["images"] == []
    assert body["id"]
    assert body["created_at"]


def test_create_collection_with_blank_name(test_client: TestClient, repository: Repository) -> None:
    response = test_client.post("/api/collections", json={"name": "   "})

    assert response.status_code == 422
    assert repository.list_collections() == []


def test_list_collections_includes_count_and_cover(
    test_client: TestClient, repository: Repository
) -> None:
    """Test that the collection listing reports size and the first image as cover."""
    first = repository.add_image(NewImage(name="First", url="https://example.com/1.jpg"))
    second = repository.add_image(NewImage(name="Second", url="https://example.com/2.jpg"))
    trip = repository.add_collection(NewCollection(name="Trip"))
    repository.add_collection(NewCollection(name="Empty"))
    repository.add_image_to_collection(second.id, trip.id)
    repository.add_image_to_collection(first.id, trip.id)

    response = test_client.get("/api/collections")

    assert response.status_code == 200
    trip_body, empty_body = response.json()
    assert trip_body["image_count"] == 2
    assert trip_body["cover_url"] == "https://example.com/2.jpg"
    assert empty_body["image_count"] == 0
    assert empty_body["cover_url"] is None


def test_edit_collection(test_client: TestClient, repository: Repository) -> None:
    collection = repository.add_collection(NewCollection(name="Trip", description="Summer"))

    response = test_client.patch(f"/api/collections/{collection.id}", json={"name": "Road trip"})

    assert response.status_code == 200
    assert response.json()["name"] == "Road trip"
    assert response.json()["description"] == "Summer"


def test_edit_unknown_collection(test_client: TestClient, fake_store: FakeKeyValueStore) -> None:
    snapshot = dict(fake_store.items)

    response = test_client.patch("/api/collections/unknown", json={"name": "X"})

    assert response.status_code == 404
    assert fake_store.items == snapshot


def test_link_and_unlink_through_api(test_client: TestClient, repository: Repository) -> None:
    """Test linking, listing and unlinking images through collection routes."""
    image = repository.add_image(NewImage(name="Castle", url="u1"))
    collection = repository.add_collection(NewCollection(name="Trip"))

    response = test_client.put(f"/api/collections/{collection.id}/images/{image.id}")
    assert response.status_code == 200
    assert response.json()["images"] == [image.id]

    response = test_client.get(f"/api/collections/{collection.id}/images")
    assert [i["id"] for i in response.json()] == [image.id]

    response = test_client.delete(f"/api/collections/{collection.id}/images/{image.id}")
    assert response.status_code == 200
    assert response.json()["images"] == []
    assert repository.get_image(image.id).collections == []


def test_link_unknown_ids(test_client: TestClient, repository: Repository) -> None:
    collection = repository.add_collection(NewCollection(name="Trip"))

    response = test_client.put(f"/api/collections/{collection.id}/images/missing")
    assert response.status_code == 404

    response = test_client.get("/api/collections/missing/images")
    assert response.status_code == 404

    response = test_client.delete("/api/collections/missing/images/whatever")
    assert response.status_code == 404


def test_delete_collection(test_client: TestClient, repository: Repository) -> None:
    image = repository.add_image(NewImage(name="Castle", url="u1"))
    collection = repository.add_collection(NewCollection(name="Trip"))
    repository.add_image_to_collection(image.id, collection.id)

    response = test_client.delete(f"/api/collections/{collection.id}")

    assert response.status_code == 204
    assert repository.get_image(image.id).collections == []
    assert test_client.get(f"/api/collections/{collection.id}").status_code == 404


def test_storage_failure_returns_503(
    test_client: TestClient, fake_store: FakeKeyValueStore
) -> None:
    """Test that a failing store is reported without crashing the app."""
    fake_store.failing_keys.add("collections")

    response = test_client.post("/api/collections", json={"name": "Trip"})

    assert response.status_code == 503
    assert response.json() == {"detail": "Storage unavailable"}

    fake_store.failing_keys.clear()
    assert test_client.get("/api/collections").json() == []
