# tests/v1/test_gift_hints_api.py

from unittest.mock import AsyncMock, MagicMock

import pytest
from aiogram.exceptions import TelegramForbiddenError
from httpx import AsyncClient

from wishbucket.bot.core import bot
from wishbucket.models.gift_hint import GiftHint


@pytest.fixture
def owner(make_user):
    return make_user(1001, first_name="Alice")


@pytest.fixture
def make_hint(db_session):
    def _make_hint(user_id: int, about_name: str, **fields) -> GiftHint:
        hint = GiftHint(user_id=user_id, about_name=about_name, **fields)
        db_session.add(hint)
        db_session.commit()
        db_session.refresh(hint)
        return hint
    return _make_hint


async def test_list_hints(client: AsyncClient, owner, make_user, make_hint, auth_headers):
    make_user(2002)
    first = make_hint(1001, "Mom", hint_text="I need a new scarf")
    second = make_hint(1001, "Dad", hint_text="Drill", status="purchased")
    make_hint(2002, "Someone else")

    response = await client.get("/api/v1/hints", headers=auth_headers(owner))
    assert [h["id"] for h in response.json()] == [second.id, first.id]
    assert response.json()[1]["message_type"] == "text"

    response = await client.get("/api/v1/hints", params={"status": "purchased"}, headers=auth_headers(owner))
    assert [h["id"] for h in response.json()] == [second.id]


async def test_hint_counts_by_person(client: AsyncClient, owner, make_hint, auth_headers):
    make_hint(1001, "mom", hint_text="Scarf")
    make_hint(1001, "Bob", hint_text="Headphones")
    make_hint(1001, "Mom", hint_text="Teapot")
    make_hint(1001, "Bob", hint_text="Old idea", status="archived")

    response = await client.get("/api/v1/hints/counts", headers=auth_headers(owner))

    assert response.json() == [{"name": "Mom", "count": 2}, {"name": "Bob", "count": 1}]


async def test_update_and_delete_hint(client: AsyncClient, owner, make_user, make_hint, auth_headers):
    hint = make_hint(1001, "Mom", hint_text="Scarf")
    headers = auth_headers(owner)

    response = await client.patch(f"/api/v1/hints/{hint.id}", json={"status": "purchased"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] == "purchased"

    response = await client.patch(f"/api/v1/hints/{hint.id}", json={"notes": "Red one"}, headers=headers)
    assert response.json()["notes"] == "Red one"
    assert response.json()["status"] == "purchased"

    assert (await client.patch(f"/api/v1/hints/{hint.id}", json={"status": "lost"}, headers=headers)).status_code == 422

    # Чужие подсказки недоступны
    other = auth_headers(make_user(2002))
    assert (await client.patch(f"/api/v1/hints/{hint.id}", json={"notes": "x"}, headers=other)).status_code == 404
    assert (await client.delete(f"/api/v1/hints/{hint.id}", headers=other)).status_code == 404

    assert (await client.delete(f"/api/v1/hints/{hint.id}", headers=headers)).status_code == 204
    assert (await client.delete(f"/api/v1/hints/{hint.id}", headers=headers)).status_code == 404


async def test_resend_text_hint(client: AsyncClient, owner, make_hint, auth_headers, mock_send_message):
    hint = make_hint(1001, "Mom <3", hint_text="I need a new scarf")

    response = await client.post(f"/api/v1/hints/{hint.id}/resend", headers=auth_headers(owner))

    assert response.json() == {"success": True}
    kwargs = mock_send_message.call_args.kwargs
    assert kwargs["chat_id"] == 1001
    assert kwargs["text"] == "💡 <b>Gift Hint from Mom &lt;3</b>\n\nI need a new scarf"


async def test_resend_photo_hint(client: AsyncClient, owner, make_hint, auth_headers, mocker):
    send_photo = mocker.patch.object(bot, "send_photo", new_callable=AsyncMock)
    hint = make_hint(1001, "Mom", hint_text="This lamp", message_type="photo", media_file_id="AgACAgIAAx")

    response = await client.post(f"/api/v1/hints/{hint.id}/resend", headers=auth_headers(owner))

    assert response.status_code == 200
    send_photo.assert_awaited_once()
    assert send_photo.call_args.kwargs["photo"] == "AgACAgIAAx"
    assert send_photo.call_args.kwargs["caption"].endswith("This lamp")


async def test_resend_to_blocked_bot(client: AsyncClient, db_session, owner, make_hint, auth_headers, mock_send_message):
    hint = make_hint(1001, "Mom", hint_text="Scarf")
    mock_send_message.side_effect = TelegramForbiddenError(method=MagicMock(), message="bot was blocked by the user")

    response = await client.post(f"/api/v1/hints/{hint.id}/resend", headers=auth_headers(owner))

    assert response.status_code == 409
    db_session.refresh(owner)
    assert owner.bot_accessible is False
