# tests/v1/test_crowdfunding_api.py

import pytest
from httpx import AsyncClient

from wishbucket.models.notification import Notification


@pytest.fixture
def owner(make_user):
    return make_user(1001, first_name="Alice")


@pytest.fixture
def guest(make_user):
    return make_user(2002, first_name="Bob")


@pytest.fixture
def third(make_user):
    return make_user(3003, first_name="Carol")


@pytest.fixture
async def item(client: AsyncClient, owner, auth_headers) -> dict:
    headers = auth_headers(owner)
    wishlist = (await client.post("/api/v1/wishlists", json={"name": "Birthday"}, headers=headers)).json()
    response = await client.post(
        f"/api/v1/wishlists/{wishlist['id']}/items", json={"name": "Bike", "price": "500"}, headers=headers
    )
    return response.json()


async def _open(client: AsyncClient, headers: dict, item_id: int, target="100") -> dict:
    response = await client.post(f"/api/v1/items/{item_id}/crowdfunding", json={"target_amount": target}, headers=headers)
    assert response.status_code == 201
    return response.json()


async def test_owner_opens_crowdfunding(client: AsyncClient, item, owner, guest, auth_headers):
    crowdfunding = await _open(client, auth_headers(owner), item["id"])

    assert crowdfunding["item_id"] == item["id"]
    assert float(crowdfunding["target_amount"]) == 100
    assert float(crowdfunding["current_amount"]) == 0
    assert crowdfunding["is_active"] is True
    assert crowdfunding["contributors"] == []

    response = await client.get(f"/api/v1/items/{item['id']}/crowdfunding", headers=auth_headers(guest))
    assert response.status_code == 200
    assert response.json()["id"] == crowdfunding["id"]


async def test_open_rejected(client: AsyncClient, item, owner, guest, auth_headers):
    url = f"/api/v1/items/{item['id']}/crowdfunding"

    assert (await client.post(url, json={"target_amount": "100"}, headers=auth_headers(guest))).status_code == 403
    assert (await client.post(url, json={"target_amount": "0"}, headers=auth_headers(owner))).status_code == 422
    assert (await client.post(url, json={"target_amount": "-5"}, headers=auth_headers(owner))).status_code == 422

    await _open(client, auth_headers(owner), item["id"])
    assert (await client.post(url, json={"target_amount": "50"}, headers=auth_headers(owner))).status_code == 409


async def test_cannot_open_for_purchased_item(client: AsyncClient, item, owner, guest, auth_headers):
    await client.post(f"/api/v1/items/{item['id']}/purchase", headers=auth_headers(guest))

    response = await client.post(
        f"/api/v1/items/{item['id']}/crowdfunding", json={"target_amount": "100"}, headers=auth_headers(owner)
    )
    assert response.status_code == 409


async def test_contributions_until_target(
    client: AsyncClient, db_session, item, owner, guest, third, auth_headers, mock_dispatch
):
    await _open(client, auth_headers(owner), item["id"])
    url = f"/api/v1/items/{item['id']}/crowdfunding/contribute"

    response = await client.post(url, json={"amount": "30"}, headers=auth_headers(guest))
    assert response.status_code == 200
    data = response.json()
    assert float(data["current_amount"]) == 30
    assert data["is_active"] is True
    assert [c["user_id"] for c in data["contributors"]] == [2002]
    mock_dispatch[0].assert_awaited_once()

    response = await client.post(url, json={"amount": "70"}, headers=auth_headers(third))
    data = response.json()
    assert float(data["current_amount"]) == 100
    assert data["is_active"] is False
    assert [c["user_id"] for c in data["contributors"]] == [2002, 3003]

    titles = [
        n.title for n in db_session.query(Notification)
        .filter(Notification.type == "crowdfunding_contribution")
        .order_by(Notification.id)
    ]
    assert titles == ["💰 New Contribution!", "🎉 Crowdfunding Complete!"]

    # Сбор закрыт
    assert (await client.post(url, json={"amount": "10"}, headers=auth_headers(guest))).status_code == 409


async def test_contribution_rejected(client: AsyncClient, item, owner, guest, auth_headers):
    url = f"/api/v1/items/{item['id']}/crowdfunding/contribute"

    # Сбор еще не открыт
    assert (await client.post(url, json={"amount": "10"}, headers=auth_headers(guest))).status_code == 404
    assert (await client.get(f"/api/v1/items/{item['id']}/crowdfunding", headers=auth_headers(guest))).status_code == 404

    await _open(client, auth_headers(owner), item["id"])
    assert (await client.post(url, json={"amount": "10"}, headers=auth_headers(owner))).status_code == 400
    assert (await client.post(url, json={"amount": "0"}, headers=auth_headers(guest))).status_code == 422
