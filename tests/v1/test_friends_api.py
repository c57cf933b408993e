# tests/v1/test_friends_api.py

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from wishbucket.models.notification import Notification


@pytest.fixture
def alice(make_user):
    return make_user(1001, first_name="Alice", username="alice")


@pytest.fixture
def bob(make_user):
    return make_user(2002, first_name="Bob", username="bobby")


async def test_follow_and_follow_back(client: AsyncClient, db_session, alice, bob, auth_headers, mock_dispatch):
    dispatch_one, _ = mock_dispatch

    response = await client.post("/api/v1/friends/2002", headers=auth_headers(alice))
    assert response.status_code == 201
    card = response.json()
    assert card["id"] == 2002
    assert card["is_following"] is True
    assert card["is_followed_by"] is False

    response = await client.post("/api/v1/friends/1001", headers=auth_headers(bob))
    assert response.json()["is_followed_by"] is True
    assert dispatch_one.await_count == 2

    titles = {
        n.user_id: (n.title, n.data["is_follow_back"])
        for n in db_session.query(Notification).filter(Notification.type == "new_follower")
    }
    assert titles == {2002: ("👤 New Follower!", False), 1001: ("🎉 New Follower!", True)}


@pytest.mark.parametrize("target, status_code", [(1001, 400), (999999, 404)])
async def test_follow_rejected(client: AsyncClient, alice, auth_headers, target, status_code):
    response = await client.post(f"/api/v1/friends/{target}", headers=auth_headers(alice))
    assert response.status_code == status_code


async def test_follow_twice_conflicts(client: AsyncClient, alice, bob, auth_headers):
    await client.post("/api/v1/friends/2002", headers=auth_headers(alice))
    response = await client.post("/api/v1/friends/2002", headers=auth_headers(alice))
    assert response.status_code == 409


async def test_friends_and_followers_lists(client: AsyncClient, alice, bob, make_user, auth_headers):
    carol = make_user(3003, first_name="Carol")
    await client.post("/api/v1/friends/2002", headers=auth_headers(alice))
    await client.post("/api/v1/friends/1001", headers=auth_headers(bob))
    await client.post("/api/v1/friends/1001", headers=auth_headers(carol))

    friends = (await client.get("/api/v1/friends", headers=auth_headers(alice))).json()
    assert [(f["id"], f["is_followed_by"]) for f in friends] == [(2002, True)]

    followers = (await client.get("/api/v1/friends/followers", headers=auth_headers(alice))).json()
    assert {f["id"]: f["is_following"] for f in followers} == {2002: True, 3003: False}

    me = (await client.get("/api/v1/users/me", headers=auth_headers(alice))).json()
    assert me["friends"] == [2002]


async def test_unfollow(client: AsyncClient, alice, bob, auth_headers):
    headers = auth_headers(alice)
    await client.post("/api/v1/friends/2002", headers=headers)

    assert (await client.delete("/api/v1/friends/2002", headers=headers)).status_code == 204
    assert (await client.get("/api/v1/friends", headers=headers)).json() == []
    assert (await client.delete("/api/v1/friends/2002", headers=headers)).status_code == 404


# --- Пользователи ---

async def test_search_users(client: AsyncClient, alice, bob, make_user, auth_headers):
    make_user(3003, first_name="Bobina")

    response = await client.get("/api/v1/users/search", params={"q": "@bob"}, headers=auth_headers(alice))
    assert [u["id"] for u in response.json()] == [2002, 3003]

    # Себя в результатах не показываем
    response = await client.get("/api/v1/users/search", params={"q": "alice"}, headers=auth_headers(alice))
    assert response.json() == []

    response = await client.get("/api/v1/users/search", params={"q": "2002"}, headers=auth_headers(alice))
    assert [u["id"] for u in response.json()] == [2002]


async def test_public_profile(client: AsyncClient, alice, bob, auth_headers):
    response = await client.get("/api/v1/users/2002", headers=auth_headers(alice))
    assert response.status_code == 200
    assert response.json()["username"] == "bobby"
    assert "bonus_points" not in response.json()

    assert (await client.get("/api/v1/users/999999", headers=auth_headers(alice))).status_code == 404
    assert (await client.get("/api/v1/users/999999/wishlists", headers=auth_headers(alice))).status_code == 404


async def test_update_birthday(client: AsyncClient, alice, auth_headers):
    response = await client.put("/api/v1/users/me", json={"birthday": "1990-05-17"}, headers=auth_headers(alice))

    assert response.status_code == 200
    assert response.json()["birthday"] == "1990-05-17"
    assert response.json()["referral_code"] == "U0001001"


async def test_birthday_reminders(client: AsyncClient, db_session, alice, bob, make_user, auth_headers):
    today = datetime.now(timezone.utc).date()
    # Високосный год, чтобы любая дата была допустимой
    bob.birthday = (today + timedelta(days=2)).replace(year=1992)
    db_session.commit()
    make_user(3003, first_name="Carol", birthday=(today + timedelta(days=40)).replace(year=1992))
    await client.post("/api/v1/friends/2002", headers=auth_headers(alice))
    await client.post("/api/v1/friends/3003", headers=auth_headers(alice))

    response = await client.get("/api/v1/users/me/birthday-reminders", headers=auth_headers(alice))

    assert response.status_code == 200
    assert [(r["friend_id"], r["friend_name"], r["days_until"]) for r in response.json()] == [(2002, "Bob", 2)]
