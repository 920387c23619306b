"""API tests for statistics, gamification and CSV export."""
from datetime import datetime, timezone

from sylvia.models import ReadingStatus, UserBook, UserGoal
from sylvia.utils.csv_utils import parse_csv


def _track(db, add_stored_book, book_id, **fields):
    add_stored_book(book_id, **fields.pop("book", {}))
    row = UserBook(user_id="user-1", book_id=book_id, **fields)
    db.add(row)
    db.commit()
    return row


def test_stats_empty_library(client):
    body = client.get("/api/stats").json()
    assert body["stats"] == {
        "total": 0, "to_read": 0, "reading": 0, "finished": 0, "avg_rating": 0.0, "avg_speed": 0,
    }
    assert body["monthly_counts"] == []
    assert body["top_genres"] == []
    assert body["goal"]["reached"] is False


def test_stats_over_library_rows_only(client, db, add_stored_book):
    _track(
        db, add_stored_book, "a",
        in_library=True,
        reading_status=ReadingStatus.FINISHED,
        reading_started_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        reading_finished_at=datetime(2024, 1, 5, tzinfo=timezone.utc),
        pages_total=100,
        rating=4,
        book={"categories": ["History"]},
    )
    _track(db, add_stored_book, "w", in_wishlist=True, rating=1)

    body = client.get("/api/stats").json()
    assert body["stats"]["total"] == 1
    assert body["stats"]["finished"] == 1
    assert body["stats"]["avg_speed"] == 25
    assert body["stats"]["avg_rating"] == 4.0
    assert body["avg_duration_days"] == 4
    assert body["monthly_counts"] == [{"label": "2024-01", "count": 1}]
    assert body["top_genres"] == [{"genre": "History", "count": 1}]


def test_stats_goal_uses_current_month(client, db, add_stored_book):
    now = datetime.now(timezone.utc)
    db.add(UserGoal(user_id="user-1", year=now.year, month=now.month, target_books=1))
    db.commit()
    _track(
        db, add_stored_book, "a",
        in_library=True,
        reading_status=ReadingStatus.FINISHED,
        reading_finished_at=now,
    )

    goal = client.get("/api/stats").json()["goal"]
    assert goal["target_books"] == 1
    assert goal["progress_books"] == 1
    assert goal["book_percent"] == 100
    assert goal["reached"] is True


def test_stats_summary(client, db, add_stored_book):
    for index, day in enumerate([3, 2, 1]):
        _track(
            db, add_stored_book, f"b{index}",
            in_library=True,
            reading_status=ReadingStatus.FINISHED,
            reading_finished_at=datetime(2024, 1, day, 12, tzinfo=timezone.utc),
            book={"categories": ["Fiction"] if index else ["Poetry"]},
        )

    body = client.get("/api/stats/summary").json()
    assert body["top_genres"][0] == {"genre": "Fiction", "count": 2}
    gamification = body["gamification"]
    assert gamification["finished_count"] == 3
    assert gamification["streak_days"] == 3
    assert gamification["level"]["name"] == "Bronze"
    assert gamification["level"]["books_to_next_level"] == 2


def test_export_library_csv(client, db, add_stored_book):
    _track(
        db, add_stored_book, "a",
        in_library=True,
        reading_status=ReadingStatus.READING,
        rating=5,
        pages_total=320,
        added_at=datetime(2024, 2, 10, tzinfo=timezone.utc),
        book={"title": "Guerre, et paix", "authors": ["Léon Tolstoï", "Translator"]},
    )
    _track(db, add_stored_book, "old", in_library=True, added_at=datetime(2023, 5, 1, tzinfo=timezone.utc))

    response = client.get("/api/stats/export", params={"kind": "library", "start": "2024-01-01", "end": "2024-12-31"})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")

    rows = parse_csv(response.text)
    assert len(rows) == 1
    assert list(rows[0].keys()) == [
        "title", "authors", "status", "rating", "started_at",
        "finished_at", "pages_total", "pages_read", "added_at",
    ]
    assert rows[0]["title"] == "Guerre, et paix"
    assert rows[0]["authors"] == "Léon Tolstoï; Translator"
    assert rows[0]["status"] == "reading"
    assert rows[0]["rating"] == "5"
    assert rows[0]["pages_read"] == ""
    assert rows[0]["added_at"].startswith("2024-02-10")


def test_export_wishlist_columns(client, db, add_stored_book):
    _track(db, add_stored_book, "w", in_wishlist=True)
    rows = parse_csv(client.get("/api/stats/export", params={"kind": "wishlist"}).text)
    assert list(rows[0].keys()) == ["title", "authors", "added_at"]


def test_export_range_is_inclusive(client, db, add_stored_book):
    _track(db, add_stored_book, "a", in_library=True, added_at=datetime(2024, 3, 31, 23, 0, tzinfo=timezone.utc))
    rows = parse_csv(client.get("/api/stats/export", params={"start": "2024-03-31", "end": "2024-03-31"}).text)
    assert len(rows) == 1


def test_export_rejects_bad_kind_and_reversed_range(client):
    assert client.get("/api/stats/export", params={"kind": "everything"}).status_code == 422
    assert client.get("/api/stats/export", params={"start": "2024-02-01", "end": "2024-01-01"}).status_code == 400
