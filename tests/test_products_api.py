"""
Product endpoints through the FastAPI app (multipart in, JSON out).
"""
import uuid

from sqlmodel import select

from app.models.product import Product
from conftest import png


def test_create_without_files_uses_defaults(client, admin_headers, silk):
    r = client.post(
        "/api/products",
        data={"name": "Scarf", "price": "19.99", "category": str(silk.id)},
        headers=admin_headers,
    )
    assert r.status_code == 201
    data = r.json()["data"]
    assert data["name"] == "Scarf"
    assert data["price"] == 19.99
    assert data["images"] == []
    assert data["stock"] == 0
    assert data["isNew"] is False
    assert data["reviewsCount"] == 0
    assert data["category"]["id"] == str(silk.id)
    assert data["category"]["name"] == "Silk"


def test_create_with_out_of_range_stock_uses_default(client, admin_headers, silk):
    r = client.post(
        "/api/products",
        data={
            "name": "Scarf",
            "price": "10",
            "category": str(silk.id),
            "stock": "99999999999999999999",
        },
        headers=admin_headers,
    )
    assert r.status_code == 201
    assert r.json()["data"]["stock"] == 0


def test_create_with_images_and_sizes(client, admin_headers, media, silk):
    r = client.post(
        "/api/products",
        data={
            "name": "Dupatta",
            "price": "45",
            "originalPrice": "60",
            "discount": "25% OFF",
            "category": str(silk.id),
            "sizes[0]": "S",
            "sizes[1]": "M",
            "isNew": "true",
            "stock": "12",
            "careInstructions": "Dry clean only",
        },
        files=[png("front.png"), png("back.png")],
        headers=admin_headers,
    )
    assert r.status_code == 201
    data = r.json()["data"]
    assert [url.rsplit("/", 1)[1] for url in data["images"]] == ["front.png", "back.png"]
    assert data["sizes"] == ["S", "M"]
    assert data["isNew"] is True
    assert data["stock"] == 12
    assert data["originalPrice"] == 60
    assert data["careInstructions"] == "Dry clean only"
    assert len(media.uploaded) == 2


def test_create_requires_token(client, media, silk):
    r = client.post(
        "/api/products",
        data={"name": "Scarf", "price": "10", "category": str(silk.id)},
        files=[png()],
    )
    assert r.status_code == 401
    assert media.uploaded == []


def test_create_with_zero_price(client, admin_headers, media, silk):
    r = client.post(
        "/api/products",
        data={"name": "Scarf", "price": "0", "category": str(silk.id)},
        files=[png()],
        headers=admin_headers,
    )
    assert r.status_code == 400
    body = r.json()
    assert body["error"] == "ValidationError"
    assert body["errors"] == [{"field": "price", "message": "Price must be a number greater than 0"}]
    assert media.uploaded == []


def test_create_lists_every_invalid_field(client, admin_headers):
    r = client.post("/api/products", data={"description": "x"}, headers=admin_headers)
    assert r.status_code == 400
    assert {e["field"] for e in r.json()["errors"]} == {"name", "price", "category"}


def test_create_with_four_images_is_rejected(client, admin_headers, media, session, silk):
    r = client.post(
        "/api/products",
        data={"name": "Scarf", "price": "10", "category": str(silk.id)},
        files=[png(f"{i}.png") for i in range(4)],
        headers=admin_headers,
    )
    assert r.status_code == 422
    assert r.json()["error"] == "UploadRejected"
    assert media.uploaded == []
    assert session.exec(select(Product)).all() == []


def test_create_with_non_image_is_rejected(client, admin_headers, media, silk):
    r = client.post(
        "/api/products",
        data={"name": "Scarf", "price": "10", "category": str(silk.id)},
        files=[("images", ("notes.txt", b"hello", "text/plain"))],
        headers=admin_headers,
    )
    assert r.status_code == 422
    assert media.uploaded == []


def test_create_with_unexpected_file_field_is_rejected(client, admin_headers, silk):
    r = client.post(
        "/api/products",
        data={"name": "Scarf", "price": "10", "category": str(silk.id)},
        files=[("photo", ("a.png", b"img", "image/png"))],
        headers=admin_headers,
    )
    assert r.status_code == 422


def test_create_with_unknown_category(client, admin_headers, media):
    r = client.post(
        "/api/products",
        data={"name": "Scarf", "price": "10", "category": str(uuid.uuid4())},
        files=[png()],
        headers=admin_headers,
    )
    assert r.status_code == 404
    assert r.json()["message"] == "Category not found"
    assert media.uploaded == []


def test_storage_failure_fails_create_and_cleans_up(client, admin_headers, media, silk):
    media.fail_uploads_for = {"bad.png"}

    r = client.post(
        "/api/products",
        data={"name": "Scarf", "price": "10", "category": str(silk.id)},
        files=[png("good.png"), png("bad.png")],
        headers=admin_headers,
    )
    assert r.status_code == 500
    assert r.json()["error"] == "UpstreamMediaError"
    assert media.deleted == media.uploaded
    assert len(media.deleted) == 1


def test_get_returns_current_category_state(client, admin_headers, silk):
    r = client.post(
        "/api/products",
        data={"name": "Scarf", "price": "10", "category": str(silk.id)},
        headers=admin_headers,
    )
    product_id = r.json()["data"]["id"]

    client.put(f"/api/categories/{silk.id}", json={"name": "Mulberry Silk"}, headers=admin_headers)

    r = client.get(f"/api/products/{product_id}")
    assert r.status_code == 200
    category = r.json()["data"]["category"]
    assert category["id"] == str(silk.id)
    assert category["name"] == "Mulberry Silk"
    assert category["isActive"] is True


def test_get_missing_product(client):
    assert client.get(f"/api/products/{uuid.uuid4()}").status_code == 404


def test_list_expands_categories(client, silk, make_product):
    make_product(silk, name="Scarf")
    make_product(silk, name="Shawl")

    r = client.get("/api/products")
    assert r.status_code == 200
    body = r.json()
    assert body["count"] == 2
    assert {p["name"] for p in body["data"]} == {"Scarf", "Shawl"}
    assert all(p["category"]["name"] == "Silk" for p in body["data"])


def test_list_filters_by_category(client, session, silk, make_product):
    from app.models.category import Category

    cotton = Category(name="Cotton")
    session.add(cotton)
    session.commit()
    session.refresh(cotton)
    make_product(silk, name="Scarf")
    make_product(cotton, name="Kurta")

    r = client.get("/api/products", params={"category": str(cotton.id)})
    assert [p["name"] for p in r.json()["data"]] == ["Kurta"]


def test_update_without_images_clears_and_deletes_them(client, admin_headers, media, silk, make_product):
    product = make_product(silk, images=["https://cdn/a.png", "https://cdn/b.png"])

    r = client.put(f"/api/products/{product.id}", data={"stock": "3"}, headers=admin_headers)
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["images"] == []
    assert data["stock"] == 3
    assert data["name"] == "Scarf"
    assert sorted(media.deleted) == ["https://cdn/a.png", "https://cdn/b.png"]


def test_update_keeps_existing_and_adds_new(client, admin_headers, media, silk, make_product):
    product = make_product(silk, images=["https://cdn/a.png", "https://cdn/b.png"])

    r = client.put(
        f"/api/products/{product.id}",
        data={"existingImages[0]": "https://cdn/a.png"},
        files=[png("new.png")],
        headers=admin_headers,
    )
    assert r.status_code == 200
    images = r.json()["data"]["images"]
    assert images[0] == "https://cdn/a.png"
    assert images[1].endswith("/new.png")
    assert media.deleted == ["https://cdn/b.png"]


def test_update_empty_description_clears_it(client, admin_headers, silk, make_product):
    product = make_product(silk, description="Soft")

    r = client.put(f"/api/products/{product.id}", data={"description": ""}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["data"]["description"] is None


def test_update_missing_product(client, admin_headers):
    r = client.put(f"/api/products/{uuid.uuid4()}", data={"name": "x"}, headers=admin_headers)
    assert r.status_code == 404


def test_delete_removes_product_and_images(client, admin_headers, media, silk, make_product):
    product = make_product(silk, images=["https://cdn/a.png", "https://cdn/b.png"])

    r = client.delete(f"/api/products/{product.id}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["message"] == "Product deleted successfully"
    assert media.deleted == ["https://cdn/a.png", "https://cdn/b.png"]

    assert client.get(f"/api/products/{product.id}").status_code == 404
    assert client.delete(f"/api/products/{product.id}", headers=admin_headers).status_code == 404


def test_delete_requires_token(client, silk, make_product):
    product = make_product(silk)
    assert client.delete(f"/api/products/{product.id}").status_code == 401


def test_unexpected_errors_are_redacted(session, media):
    from fastapi.testclient import TestClient

    from app.database import get_session
    from app.main import app
    from app.repositories.category_repo import CategoryRepository
    from app.repositories.product_repo import ProductRepository
    from app.routers.products import get_product_service
    from app.services.product_service import ProductService

    class BrokenRepository(ProductRepository):
        def list(self, session, **kwargs):
            raise RuntimeError("db exploded")

    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_product_service] = lambda: ProductService(
        BrokenRepository(), CategoryRepository(), media
    )
    try:
        r = TestClient(app, raise_server_exceptions=False).get("/api/products")
    finally:
        app.dependency_overrides.clear()

    assert r.status_code == 500
    assert r.json()["message"] == "Server Error"


def test_image_over_configured_ceiling_is_rejected_while_reading(
    client, admin_headers, media, session, silk, monkeypatch
):
    from app.core.config import get_settings

    monkeypatch.setattr(get_settings(), "MAX_IMAGE_BYTES", 16)

    r = client.post(
        "/api/products",
        data={"name": "Scarf", "price": "10", "category": str(silk.id)},
        files=[png("small.png", b"x" * 16), png("big.png", b"x" * 17)],
        headers=admin_headers,
    )
    assert r.status_code == 422
    body = r.json()
    assert body["error"] == "UploadRejected"
    assert body["errors"][0]["field"] == "images"
    assert "big.png" in body["errors"][0]["message"]
    assert media.uploaded == []
    assert session.exec(select(Product)).all() == []


def test_file_parts_past_configured_count_are_rejected(client, admin_headers, media, silk, monkeypatch):
    from app.core.config import get_settings

    monkeypatch.setattr(get_settings(), "MAX_PRODUCT_IMAGES", 1)

    r = client.post(
        "/api/products",
        data={"name": "Scarf", "price": "10", "category": str(silk.id)},
        files=[png("a.png"), png("b.png")],
        headers=admin_headers,
    )
    assert r.status_code == 422
    assert r.json()["message"] == "Too many images: at most 1 files per request"
    assert media.uploaded == []
