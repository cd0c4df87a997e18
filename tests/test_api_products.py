import re
from types import SimpleNamespace

from catalog.api import tasks as tasks_api
from catalog.utils.identifiers import is_ean13

PRODUCT_CODE = re.compile(r"^TSH-\d{2}-0001$")


def create(client, payload):
    response = client.post("/api/products", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_create_generates_identifiers(client, sample_payload):
    data = create(client, sample_payload)

    assert PRODUCT_CODE.match(data["product_code"])
    assert data["base_sku"] == "TSH-0001"
    assert is_ean13(data["barcode"])
    assert data["hs_code"] == "6109.10"
    assert data["status"] == "Draft"
    assert data["categories"] == [1]
    assert data["factory"] == 1
    assert data["images"] == [11, 12]
    assert data["publishedAt"] is None

    stocks = data["product_variants"][0]["size_stocks"]
    assert [s["generated_sku"] for s in stocks] == ["TSH-0001-RED-M", "TSH-0001-RED-L"]


def test_create_completes_twelve_digit_barcode(client):
    data = create(client, {"name": "Tee", "barcode": "123456789012"})
    assert data["barcode"] == "1234567890128"


def test_create_masks_product_code(client):
    data = create(client, {"name": "Tee", "product_code": "tsh-25-0042"})
    assert data["product_code"] == "TSH-25-0042"


def test_create_requires_name(client):
    response = client.post("/api/products", json={"slug": "nameless"})
    assert response.status_code == 400


def test_create_rejects_missing_size_name(client):
    response = client.post("/api/products", json={
        "name": "Tee",
        "product_variants": [{"color": "Red", "size_stocks": [{"stock_quantity": 1}]}],
    })

    assert response.status_code == 400
    assert "missing size_name" in response.json()["detail"]


def test_publishing_incomplete_product_is_refused(client):
    response = client.post("/api/products", json={"name": "Tee", "publishedAt": "2025-06-15T10:00:00Z"})

    assert response.status_code == 400
    body = response.json()
    assert body["detail"].startswith("Cannot publish product: missing")
    assert "slug" in body["errors"]
    assert "at least one color + size variant" in body["errors"]
    assert client.get("/api/products").json()["total"] == 0


def test_publishing_complete_product(client, sample_payload):
    data = create(client, {**sample_payload, "publishedAt": "2025-06-15T10:00:00Z"})
    assert data["publishedAt"].startswith("2025-06-15T10:00:00")


def test_duplicate_product_code_conflicts(client):
    create(client, {"name": "Tee", "product_code": "TSH-25-0042"})

    response = client.post("/api/products", json={"name": "Other Tee", "product_code": "TSH-25-0042"})

    assert response.status_code == 409


def test_update_keeps_identifiers(client, sample_payload):
    created = create(client, sample_payload)

    response = client.put(f"/api/products/{created['id']}", json={"short_description": "Now softer"})

    assert response.status_code == 200
    updated = response.json()
    assert updated["short_description"] == "Now softer"
    for field in ("uuid", "product_code", "base_sku", "barcode", "factory_batch_code", "label_serial_code"):
        assert updated[field] == created[field]


def test_update_fills_missing_identifiers_but_not_variants(client):
    created = create(client, {"name": "Tee"})

    variants = [{"color": "Blue", "size": "S, S"}]
    response = client.put(
        f"/api/products/{created['id']}",
        json={"barcode": None, "product_variants": variants},
    )

    updated = response.json()
    assert is_ean13(updated["barcode"])
    assert updated["product_variants"] == variants


def test_update_publish_runs_guard(client):
    created = create(client, {"name": "Tee"})

    response = client.put(f"/api/products/{created['id']}", json={"publishedAt": "2025-06-15T10:00:00Z"})

    assert response.status_code == 400
    assert "image (images or gallery)" in response.json()["errors"]


def test_update_missing_product(client):
    assert client.put("/api/products/999", json={"name": "x"}).status_code == 404


def test_get_list_and_delete(client, sample_payload):
    created = create(client, sample_payload)
    create(client, {"name": "Jeans", "categories": [2]})

    assert client.get(f"/api/products/{created['id']}").json()["name"] == "Classic Tee"

    listing = client.get("/api/products", params={"product_code": "tsh"}).json()
    assert listing["total"] == 1
    assert listing["items"][0]["id"] == created["id"]

    assert client.get("/api/products", params={"name": "jean"}).json()["total"] == 1

    assert client.delete(f"/api/products/{created['id']}").status_code == 204
    assert client.get(f"/api/products/{created['id']}").status_code == 404


def test_check_unique(client):
    created = create(client, {"name": "Tee"})
    code = created["product_code"]

    taken = client.get("/api/products/check-unique", params={"field": "product_code", "value": code})
    assert taken.json()["unique"] is False

    own = client.get(
        "/api/products/check-unique",
        params={"field": "product_code", "value": code, "exclude_id": created["id"]},
    )
    assert own.json()["unique"] is True

    free = client.get("/api/products/check-unique", params={"field": "barcode", "value": "4006381333931"})
    assert free.json()["unique"] is True

    bad = client.get("/api/products/check-unique", params={"field": "name", "value": "Tee"})
    assert bad.status_code == 400


def test_duplicate_endpoint(client, sample_payload):
    created = create(client, sample_payload)

    response = client.post(f"/api/products/{created['id']}/duplicate")

    assert response.status_code == 201
    copy = response.json()
    assert copy["name"] == "Classic Tee (copy)"
    assert copy["status"] == "Draft"
    assert copy["product_code"] != created["product_code"]
    assert copy["product_code"].endswith("-0002")

    assert client.post("/api/products/999/duplicate").status_code == 404


def test_enqueue_maintenance_job(client, monkeypatch):
    queued = []
    monkeypatch.setattr(tasks_api.progress, "update_progress", lambda task_id, **kwargs: kwargs)
    monkeypatch.setattr(
        tasks_api, "run_maintenance_job",
        SimpleNamespace(delay=lambda task_id, job: queued.append((task_id, job))),
    )

    response = client.post("/api/tasks/maintenance/backfill-codes")

    assert response.status_code == 202
    body = response.json()
    assert body["job"] == "backfill-codes"
    assert queued == [(body["task_id"], "backfill-codes")]


def test_enqueue_unknown_job(client):
    assert client.post("/api/tasks/maintenance/reindex").status_code == 404


def test_task_progress(client, monkeypatch):
    stored = {"task-1": {"task_id": "task-1", "job": "backfill-codes", "status": "completed",
                         "progress": 100.0, "result": {"products": 3, "updated": 1}}}
    monkeypatch.setattr(tasks_api.progress, "read_progress", lambda task_id: stored.get(task_id))

    response = client.get("/api/tasks/task-1/progress")
    assert response.status_code == 200
    assert response.json()["result"] == {"products": 3, "updated": 1}

    assert client.get("/api/tasks/task-2/progress").status_code == 404


def test_deleted_product_code_is_reused(client):
    first = create(client, {"name": "Tee", "categories": [1]})
    assert client.delete(f"/api/products/{first['id']}").status_code == 204

    second = create(client, {"name": "Tee again", "categories": [1]})

    assert second["product_code"] == first["product_code"]


def test_update_clears_relations(client, sample_payload):
    created = create(client, sample_payload)
    assert created["categories"] == [1]
    assert created["factory"] == 1

    response = client.put(
        f"/api/products/{created['id']}",
        json={"categories": [], "factory": None, "images": {"data": []}},
    )

    assert response.status_code == 200
    updated = response.json()
    assert updated["categories"] == []
    assert updated["factory"] is None
    assert updated["images"] is None
    assert updated["product_code"] == created["product_code"]


def test_null_name_is_rejected(client):
    created = create(client, {"name": "Tee"})

    assert client.put(f"/api/products/{created['id']}", json={"name": None}).status_code == 422
    assert client.post("/api/products", json={"name": None}).status_code == 422
    assert client.get(f"/api/products/{created['id']}").json()["name"] == "Tee"
