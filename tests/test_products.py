from datetime import date, timedelta
from uuid import UUID

from clinicstock.models import Product, StockMovement
from clinicstock.services import storage_service
from tests.conftest import make_user, make_product, auth_headers, activate_subscription

EXPIRY = (date.today() + timedelta(days=120)).isoformat()


def product_payload(**overrides):
    payload = {
        "name": "Ácido hialurônico",
        "category": "Injetáveis",
        "unit": "Ampola",
        "current_stock": 20,
        "minimum_stock": 5,
        "expiry_date": EXPIRY,
        "batch_number": "L-001",
        "supplier": "Distribuidora Sul",
        "cost_price": "89.90",
    }
    payload.update(overrides)
    return payload


def movements_for(db, product_id):
    db.expire_all()
    if isinstance(product_id, str):
        product_id = UUID(product_id)
    return (
        db.query(StockMovement)
        .filter(StockMovement.product_id == product_id)
        .order_by(StockMovement.date)
        .all()
    )


def test_create_product_writes_initial_entry(client, db, headers):
    response = client.post("/api/v1/products", json=product_payload(), headers=headers)

    assert response.status_code == 201
    product = response.json()["product"]
    assert product["current_stock"] == 20
    assert product["cost_price"] == 89.9

    movements = movements_for(db, product["id"])
    assert len(movements) == 1
    assert movements[0].type == "entrada"
    assert movements[0].reason == "Entrada Manual"
    assert (movements[0].previous_stock, movements[0].new_stock) == (0, 20)


def test_create_product_without_stock_has_no_movement(client, db, headers):
    response = client.post("/api/v1/products", json=product_payload(current_stock=0), headers=headers)

    assert response.status_code == 201
    assert movements_for(db, response.json()["product"]["id"]) == []


def test_create_product_rejects_negative_stock(client, headers):
    response = client.post("/api/v1/products", json=product_payload(current_stock=-1), headers=headers)
    assert response.status_code == 422


def test_create_product_form_with_photo(client, db, headers, monkeypatch):
    uploads = []

    def fake_upload(content, filename, folder):
        uploads.append((filename, folder))
        return "https://res.cloudinary.com/demo/foto.jpg", f"{folder}/foto"

    monkeypatch.setattr(storage_service, "upload_image", fake_upload)
    data = {k: str(v) for k, v in product_payload(current_stock=3).items()}

    response = client.post(
        "/api/v1/products/form",
        data=data,
        files={"photo": ("foto.jpg", b"\xff\xd8imagem", "image/jpeg")},
        headers=headers,
    )

    assert response.status_code == 201
    product = response.json()["product"]
    assert product["photo_url"] == "https://res.cloudinary.com/demo/foto.jpg"
    assert uploads[0][0] == "foto.jpg"
    assert uploads[0][1].endswith(f"/products/{product['id']}")


def test_list_and_search_products(client, db, subscriber, headers):
    make_product(db, subscriber, name="Luva nitrílica", supplier="MedSupply", current_stock=2)
    make_product(db, subscriber, name="Seringa 5ml")

    response = client.get("/api/v1/products", params={"q": "luva"}, headers=headers)
    assert response.status_code == 200
    assert [p["name"] for p in response.json()["items"]] == ["Luva nitrílica"]

    response = client.get("/api/v1/products", params={"stock_status": "low_stock"}, headers=headers)
    assert [p["name"] for p in response.json()["items"]] == ["Luva nitrílica"]

    response = client.get("/api/v1/products", headers=headers)
    assert response.json()["total"] == 2


def test_edit_stock_records_adjustment(client, db, headers):
    created = client.post("/api/v1/products", json=product_payload(current_stock=20), headers=headers).json()
    product_id = created["product"]["id"]

    response = client.patch(
        f"/api/v1/products/{product_id}",
        json={"current_stock": 15, "supplier": "Outro fornecedor"},
        headers=headers,
    )

    assert response.status_code == 200
    body = response.json()["product"]
    assert body["current_stock"] == 15
    assert body["supplier"] == "Outro fornecedor"

    adjustment = movements_for(db, product_id)[-1]
    assert adjustment.reason == "Ajuste"
    assert adjustment.type == "saida"
    assert adjustment.quantity == 5
    assert (adjustment.previous_stock, adjustment.new_stock) == (20, 15)


def test_edit_without_stock_change_has_no_adjustment(client, db, headers):
    created = client.post("/api/v1/products", json=product_payload(), headers=headers).json()
    product_id = created["product"]["id"]

    client.patch(f"/api/v1/products/{product_id}", json={"notes": "Guardar refrigerado"}, headers=headers)

    assert len(movements_for(db, product_id)) == 1


def test_delete_keeps_history_and_removes_photo(client, db, subscriber, headers, monkeypatch):
    deleted = []
    monkeypatch.setattr(storage_service, "delete_image", lambda public_id: deleted.append(public_id) or True)

    created = client.post("/api/v1/products", json=product_payload(), headers=headers).json()
    product_id = created["product"]["id"]
    product = db.query(Product).first()
    product.photo_public_id = "users/x/products/y/foto"
    db.commit()

    response = client.delete(f"/api/v1/products/{product_id}", headers=headers)

    assert response.status_code == 200
    assert response.json()["photo_deleted"] is True
    assert deleted == ["users/x/products/y/foto"]
    db.expire_all()
    assert db.query(Product).count() == 0
    assert len(movements_for(db, product_id)) == 1


def test_other_users_products_are_not_visible(client, db, headers):
    other = make_user(db, email="outra@clinica.com")
    activate_subscription(db, other)
    foreign = make_product(db, other)

    assert client.get(f"/api/v1/products/{foreign.id}", headers=headers).status_code == 404
    assert client.delete(f"/api/v1/products/{foreign.id}", headers=headers).status_code == 404
    assert client.get("/api/v1/products", headers=headers).json()["total"] == 0


def test_products_require_active_subscription(client, db, user):
    response = client.get("/api/v1/products", headers=auth_headers(user))

    assert response.status_code == 403
    assert response.json()["detail"] == "Assinatura inativa ou expirada"


def test_past_due_subscription_is_blocked(client, db, user):
    activate_subscription(db, user, status="past_due")
    assert client.get("/api/v1/products", headers=auth_headers(user)).status_code == 403


def test_trialing_subscription_is_allowed(client, db, user):
    activate_subscription(db, user, status="trialing")
    assert client.get("/api/v1/products", headers=auth_headers(user)).status_code == 200


def test_export_products_csv(client, db, subscriber, headers):
    make_product(db, subscriber, name="Máscara facial")

    response = client.get("/api/v1/products/export", params={"format": "csv"}, headers=headers)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    text = response.content.decode("utf-8-sig")
    assert text.splitlines()[0].startswith("Nome;Categoria")
    assert "Máscara facial" in text


def test_export_products_xlsx(client, db, subscriber, headers):
    make_product(db, subscriber)

    response = client.get("/api/v1/products/export", headers=headers)

    assert response.status_code == 200
    assert response.content[:2] == b"PK"
