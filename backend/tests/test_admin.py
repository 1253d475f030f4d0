from conftest import login


def _user_id(client, username: str) -> int:
    users = client.get("/api/admin/users").json()
    return next(user["id"] for user in users if user["username"] == username)


def _new_book(client, **overrides) -> dict:
    payload = {"title": "La Tregua", "author": "Mario Benedetti", "genre": "Novela", "stock": 3}
    payload.update(overrides)
    response = client.post("/api/admin/books", json=payload)
    assert response.status_code == 201
    return response.json()


def test_dashboard_counts(client):
    login(client, "admin", "admin123")

    counts = client.get("/api/admin/dashboard").json()

    assert counts == {"users": 3, "books": 13, "loans": 3}


def test_book_crud(client):
    login(client, "admin", "admin123")

    created = _new_book(client)
    assert created["stock"] == 3
    assert created["is_available"] is True

    updated = client.put(
        f"/api/admin/books/{created['id']}",
        json={"title": "La Tregua", "author": "Mario Benedetti", "is_upcoming": True},
    ).json()
    assert updated["stock"] == 3
    assert updated["is_available"] is False

    assert client.delete(f"/api/admin/books/{created['id']}").status_code == 204
    assert client.get(f"/api/admin/books/{created['id']}").status_code == 404


def test_upcoming_book_appears_only_in_upcoming_list(client):
    login(client, "admin", "admin123")
    _new_book(client, title="Rayuela", is_upcoming=True)

    catalog = {book["title"] for book in client.get("/api/books/").json()}
    upcoming = {book["title"] for book in client.get("/api/books/upcoming").json()}

    assert "Rayuela" not in catalog
    assert "Rayuela" in upcoming


def test_book_search_filters_by_title(client):
    login(client, "admin", "admin123")

    titles = [book["title"] for book in client.get("/api/admin/books", params={"q": "el"}).json()]

    assert titles
    assert all("el" in title.lower() for title in titles)
    assert "1984" not in titles


def test_negative_stock_is_rejected(client):
    login(client, "admin", "admin123")

    response = client.post("/api/admin/books", json={"title": "X", "author": "Y", "stock": -1})

    assert response.status_code == 422


def test_book_with_loan_history_cannot_be_deleted(client):
    login(client, "admin", "admin123")
    book_id = next(b["id"] for b in client.get("/api/admin/books").json() if b["title"] == "El Principito")

    response = client.delete(f"/api/admin/books/{book_id}")

    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "book_has_loans"


def test_cover_upload_replaces_previous_file(client, settings):
    login(client, "admin", "admin123")
    book = _new_book(client)

    first = client.post(
        f"/api/admin/books/{book['id']}/cover",
        files={"file": ("my cover.png", b"first", "image/png")},
    ).json()
    second = client.post(
        f"/api/admin/books/{book['id']}/cover",
        files={"file": ("my cover.png", b"second", "image/png")},
    ).json()

    covers = settings.media_dir / "covers"
    assert first["cover_image_path"].endswith("-my_cover.png")
    assert second["cover_image_path"] != first["cover_image_path"]
    assert not (covers / first["cover_image_path"]).exists()
    assert (covers / second["cover_image_path"]).read_bytes() == b"second"


def test_pdf_upload_for_unknown_book_is_404(client, settings):
    login(client, "admin", "admin123")

    response = client.post(
        "/api/admin/books/9999/pdf",
        files={"file": ("book.pdf", b"%PDF-1.4", "application/pdf")},
    )

    assert response.status_code == 404
    assert not (settings.media_dir / "pdfs").exists()


def test_user_crud(client):
    login(client, "admin", "admin123")

    created = client.post(
        "/api/admin/users",
        json={"username": "Lector", "name": "Lector Nuevo", "email": "lector@example.com", "password": "clave1"},
    )
    assert created.status_code == 201
    user = created.json()
    assert user["username"] == "lector"
    assert user["role"] == "user"
    assert "password_hash" not in user

    # Blank password keeps the current one
    updated = client.put(
        f"/api/admin/users/{user['id']}",
        json={"username": "lector", "name": "Lector Editado", "email": "lector@example.com", "role": "admin"},
    ).json()
    assert updated["name"] == "Lector Editado"
    assert updated["role"] == "admin"

    login(client, "lector", "clave1")
    assert client.get("/api/admin/dashboard").status_code == 200

    login(client, "admin", "admin123")
    assert client.delete(f"/api/admin/users/{user['id']}").status_code == 204
    assert client.get(f"/api/admin/users/{user['id']}").status_code == 404


def test_username_must_be_unique(client):
    login(client, "admin", "admin123")

    response = client.post(
        "/api/admin/users",
        json={"username": "USUARIO1", "name": "Dup", "email": "dup@example.com", "password": "clave1"},
    )

    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "username_taken"


def test_admin_cannot_delete_self(client):
    login(client, "admin", "admin123")

    response = client.delete(f"/api/admin/users/{_user_id(client, 'admin')}")

    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "self_delete"


def test_user_with_books_on_loan_cannot_be_deleted(client):
    login(client, "admin", "admin123")
    reader_id = _user_id(client, "usuario1")

    response = client.delete(f"/api/admin/users/{reader_id}")

    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "user_has_loans"
    assert client.get(f"/api/admin/users/{reader_id}").status_code == 200


def test_user_with_returned_loans_cannot_be_deleted(client):
    login(client, "usuario2", "user123")
    book_id = next(b["id"] for b in client.get("/api/books/").json() if b["title"] == "Ficciones")
    client.post("/api/loans/borrow", json={"book_id": book_id})
    client.post("/api/loans/return", json={"book_id": book_id})

    login(client, "admin", "admin123")
    before = client.get("/api/admin/dashboard").json()["loans"]
    response = client.delete(f"/api/admin/users/{_user_id(client, 'usuario2')}")

    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "user_has_loans"
    assert client.get("/api/admin/dashboard").json()["loans"] == before


def test_user_without_loans_can_be_deleted(client):
    login(client, "admin", "admin123")
    reader_id = _user_id(client, "usuario2")

    assert client.delete(f"/api/admin/users/{reader_id}").status_code == 204
    assert client.get(f"/api/admin/users/{reader_id}").status_code == 404


def test_book_edit_without_stock_keeps_stock(client):
    login(client, "admin", "admin123")
    book_id = next(b["id"] for b in client.get("/api/admin/books").json() if b["title"] == "1984")

    response = client.put(f"/api/admin/books/{book_id}", json={"title": "1984", "author": "George Orwell"})

    assert response.status_code == 200
    assert response.json()["stock"] == 19


def test_book_edit_does_not_undo_loans(client):
    login(client, "admin", "admin123")
    book = _new_book(client, title="Pedro Paramo", stock=1)

    login(client, "usuario2", "user123")
    assert client.post("/api/loans/borrow", json={"book_id": book["id"]}).status_code == 201

    login(client, "admin", "admin123")
    resaved = client.put(
        f"/api/admin/books/{book['id']}",
        json={"title": "Pedro Paramo", "author": "Juan Rulfo", "stock": 1},
    ).json()
    assert resaved["stock"] == 0

    login(client, "usuario2", "user123")
    assert client.post("/api/loans/return", json={"book_id": book["id"]}).status_code == 200

    login(client, "admin", "admin123")
    assert client.get(f"/api/admin/books/{book['id']}").json()["stock"] == 1


def test_unusable_upload_name_is_a_bad_request(client):
    login(client, "admin", "admin123")
    book = _new_book(client)

    response = client.post(
        f"/api/admin/books/{book['id']}/cover",
        files={"file": ("...", b"data", "image/png")},
    )

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "validation_error"
