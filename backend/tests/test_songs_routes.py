"""Tests for song and rating routes."""

from collections.abc import Callable

import pytest
from fastapi.testclient import TestClient

Headers = Callable[..., dict[str, str]]


@pytest.fixture
def song_id(client: TestClient, auth_headers: Headers) -> str:
    response = client.post(
        "/api/songs",
        json={"title": "Bohemian Rhapsody", "artist": "Queen"},
        headers=auth_headers(),
    )
    assert response.status_code == 201
    return response.json()["id"]


def test_create_song(song_id: str) -> None:
    assert song_id == "queen-bohemian-rhapsody"


def test_rate_song(client: TestClient, auth_headers: Headers, song_id: str) -> None:
    response = client.put(
        f"/api/my/songs/{song_id}/rating",
        json={
            "difficulty_rating": 7,
            "mood_tags": ["Epic", "epic"],
            "language_tags": ["Japanese", "English"],
            "rating": 5,
        },
        headers=auth_headers("user1"),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["song"]["title"] == "Bohemian Rhapsody"
    assert data["difficulty_rating"] == 7
    assert data["mood_tags"] == ["epic"]
    assert data["language_tags"] == ["english", "japanese"]
    assert data["times_performed"] == 0


def test_rate_song_out_of_range(client: TestClient, auth_headers: Headers, song_id: str) -> None:
    response = client.put(
        f"/api/my/songs/{song_id}/rating",
        json={"difficulty_rating": 11},
        headers=auth_headers("user1"),
    )
    assert response.status_code == 422


def test_rate_unknown_song(client: TestClient, auth_headers: Headers) -> None:
    response = client.put("/api/my/songs/nope/rating", json={"difficulty_rating": 3}, headers=auth_headers())
    assert response.status_code == 404


def test_my_songs_and_performances(client: TestClient, auth_headers: Headers, song_id: str) -> None:
    client.put(f"/api/my/songs/{song_id}/rating", json={"difficulty_rating": 7}, headers=auth_headers("user1"))

    performed = client.post(f"/api/my/songs/{song_id}/performances", headers=auth_headers("user1"))
    listing = client.get("/api/my/songs", headers=auth_headers("user1"))

    assert performed.status_code == 200
    assert performed.json()["times_performed"] == 1
    data = listing.json()
    assert data["total"] == 1
    assert data["songs"][0]["song_id"] == song_id
    assert client.get("/api/my/songs", headers=auth_headers("user2")).json()["total"] == 0


def test_performance_without_rating(client: TestClient, auth_headers: Headers, song_id: str) -> None:
    response = client.post(f"/api/my/songs/{song_id}/performances", headers=auth_headers("user1"))
    assert response.status_code == 404
