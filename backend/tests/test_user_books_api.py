"""API tests for library/wishlist membership and partial updates."""
from conftest import make_book
from sylvia.models import UserBook


def _add(client, book_id, **flags):
    return client.post("/api/user-books", json={"book": make_book(book_id).model_dump(), **flags})


def test_add_to_library(client, db):
    response = _add(client, "b1", in_library=True)
    assert response.status_code == 200
    assert response.json() == {"ok": True, "already_in_library": False, "already_in_wishlist": False}

    row = db.get(UserBook, ("user-1", "b1"))
    assert row.in_library is True
    assert row.in_wishlist is False


def test_wishlist_on_library_book_is_conflict(client, db):
    _add(client, "b1", in_library=True)
    response = _add(client, "b1", in_wishlist=True)
    assert response.status_code == 409

    row = db.get(UserBook, ("user-1", "b1"))
    assert row.in_library is True
    assert row.in_wishlist is False


def test_library_insertion_clears_wishlist(client, db):
    _add(client, "b1", in_wishlist=True)
    response = _add(client, "b1", in_library=True)
    assert response.status_code == 200
    assert response.json()["already_in_wishlist"] is True

    db.expire_all()
    row = db.get(UserBook, ("user-1", "b1"))
    assert row.in_library is True
    assert row.in_wishlist is False


def test_invalid_book_payload_is_rejected(client):
    response = client.post("/api/user-books", json={"book": {"id": "   "}, "in_library": True})
    assert response.status_code == 422


def test_library_and_wishlist_listing(client):
    _add(client, "lib", in_library=True)
    _add(client, "wish", in_wishlist=True)

    library = client.get("/api/library").json()["items"]
    wishlist = client.get("/api/wishlist").json()["items"]
    assert [item["book_id"] for item in library] == ["lib"]
    assert [item["book_id"] for item in wishlist] == ["wish"]
    assert library[0]["book"]["title"] == "Book lib"


def test_patch_applies_only_sent_fields(client):
    _add(client, "b1", in_library=True)
    client.patch("/api/user-books/b1", json={"rating": 4, "personal_note": "loved it"})

    response = client.patch("/api/user-books/b1", json={"reading_status": "finished"})
    assert response.status_code == 200
    body = response.json()
    assert body["reading_status"] == "finished"
    assert body["rating"] == 4
    assert body["personal_note"] == "loved it"


def test_patch_explicit_null_clears_nullable_field(client):
    _add(client, "b1", in_library=True)
    client.patch("/api/user-books/b1", json={"rating": 4})
    response = client.patch("/api/user-books/b1", json={"rating": None})
    assert response.status_code == 200
    assert response.json()["rating"] is None


def test_patch_null_on_flag_is_bad_request(client):
    _add(client, "b1", in_library=True)
    response = client.patch("/api/user-books/b1", json={"in_library": None})
    assert response.status_code == 400


def test_patch_rejects_unknown_fields(client):
    _add(client, "b1", in_library=True)
    response = client.patch("/api/user-books/b1", json={"user_id": "someone-else"})
    assert response.status_code == 422


def test_patch_rejects_rating_out_of_range(client):
    _add(client, "b1", in_library=True)
    assert client.patch("/api/user-books/b1", json={"rating": 6}).status_code == 422
    assert client.patch("/api/user-books/b1", json={"rating": 0}).status_code == 422


def test_patch_wishlist_on_library_book_is_conflict(client):
    _add(client, "b1", in_library=True)
    response = client.patch("/api/user-books/b1", json={"in_wishlist": True})
    assert response.status_code == 409


def test_patch_moving_to_library_clears_wishlist(client):
    _add(client, "b1", in_wishlist=True)
    response = client.patch("/api/user-books/b1", json={"in_library": True})
    assert response.status_code == 200
    assert response.json()["in_wishlist"] is False


def test_patch_missing_row_is_not_found(client):
    response = client.patch("/api/user-books/missing", json={"rating": 3})
    assert response.status_code == 404


def test_delete(client, db):
    _add(client, "b1", in_library=True)
    assert client.delete("/api/user-books/b1").status_code == 204
    assert db.get(UserBook, ("user-1", "b1")) is None
    assert client.delete("/api/user-books/b1").status_code == 404


def test_requires_authentication(anonymous_client):
    response = anonymous_client.get("/api/library")
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"
