"""API tests for monthly goals and custom lists."""
from sylvia.models import Profile, UserGoal
from sylvia.services.list_service import get_user_lists


def test_goal_crud(client, db):
    assert client.get("/api/goals/2024/3").status_code == 404

    response = client.put("/api/goals/2024/3", json={"target_books": 4, "target_pages": 0})
    assert response.status_code == 200
    assert response.json() == {"year": 2024, "month": 3, "target_books": 4, "target_pages": None}

    assert client.get("/api/goals/2024/3").json()["target_books"] == 4

    assert client.delete("/api/goals/2024/3").status_code == 204
    assert db.get(UserGoal, ("user-1", 2024, 3)) is None
    assert client.delete("/api/goals/2024/3").status_code == 404


def test_goal_validation(client):
    assert client.put("/api/goals/2024/13", json={"target_books": 1}).status_code == 422
    assert client.put("/api/goals/2024/0", json={"target_books": 1}).status_code == 422
    assert client.put("/api/goals/2024/1", json={"target_books": -1}).status_code == 422
    assert client.put("/api/goals/2024/1", json={"books": 1}).status_code == 422


def test_list_lifecycle(client, add_stored_book):
    add_stored_book("b1")
    created = client.post("/api/lists", json={"name": "  Summer  ", "description": "beach reads"})
    assert created.status_code == 201
    list_id = created.json()["id"]
    assert created.json()["name"] == "Summer"
    assert created.json()["is_public"] is False

    assert client.post(f"/api/lists/{list_id}/books", json={"book_id": "b1"}).status_code == 201
    assert client.post(f"/api/lists/{list_id}/books", json={"book_id": "b1"}).status_code == 409
    assert client.post(f"/api/lists/{list_id}/books", json={"book_id": "nope"}).status_code == 404

    detail = client.get(f"/api/lists/{list_id}").json()
    assert [item["book_id"] for item in detail["items"]] == ["b1"]
    assert detail["items"][0]["book"]["title"] == "Book b1"

    updated = client.patch(f"/api/lists/{list_id}", json={"is_public": True, "description": ""})
    assert updated.json()["is_public"] is True
    assert updated.json()["description"] is None

    assert client.delete(f"/api/lists/{list_id}/books/b1").status_code == 204
    assert client.get(f"/api/lists/{list_id}").json()["items"] == []

    assert client.delete(f"/api/lists/{list_id}").status_code == 204
    assert client.get(f"/api/lists/{list_id}").status_code == 404


def test_list_name_required(client):
    assert client.post("/api/lists", json={"name": "   "}).status_code == 400
    list_id = client.post("/api/lists", json={"name": "Keep"}).json()["id"]
    assert client.patch(f"/api/lists/{list_id}", json={"name": ""}).status_code == 400
    assert client.patch(f"/api/lists/{list_id}", json={"owner": "x"}).status_code == 422


def test_lists_are_owner_scoped(client, db):
    list_id = client.post("/api/lists", json={"name": "Mine"}).json()["id"]
    assert [lst["id"] for lst in client.get("/api/lists").json()] == [list_id]

    db.add(Profile(id="user-2", username="other"))
    db.commit()
    assert get_user_lists(db, "user-2") == []


def test_public_list_page(client, add_stored_book):
    add_stored_book("b1")
    list_id = client.post("/api/lists", json={"name": "Shared"}).json()["id"]
    client.post(f"/api/lists/{list_id}/books", json={"book_id": "b1"})

    assert client.get(f"/api/u/reader/lists/{list_id}").status_code == 404

    client.patch(f"/api/lists/{list_id}", json={"is_public": True})
    response = client.get(f"/api/u/READER/lists/{list_id}")
    assert response.status_code == 200
    assert response.json()["name"] == "Shared"
    assert len(response.json()["items"]) == 1
