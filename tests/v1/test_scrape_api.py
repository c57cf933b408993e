# tests/v1/test_scrape_api.py

from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from wishbucket.clients.web import page_fetcher
from wishbucket.core.exceptions import RemoteFetchFailed
from wishbucket.core.redis import get_redis_client
from wishbucket.main import app

PAGE = """
<html><head>
  <meta property="og:title" content="Echo Dot (5th Gen)">
  <meta property="og:image" content="https://m.media-amazon.com/images/I/echo.jpg">
  <meta property="product:price:amount" content="49.99">
  <meta property="product:price:currency" content="USD">
</head></html>
"""


@pytest.fixture
def fake_redis():
    redis = AsyncMock()
    redis.get.return_value = None
    app.dependency_overrides[get_redis_client] = lambda: redis
    yield redis
    app.dependency_overrides.pop(get_redis_client, None)


@pytest.fixture
def mock_fetch(mocker):
    return mocker.patch.object(page_fetcher, "fetch_html", new_callable=AsyncMock)


async def test_scrape_returns_product_info(client: AsyncClient, make_user, auth_headers, fake_redis, mock_fetch):
    mock_fetch.return_value = (PAGE, "https://www.amazon.com/dp/B09B8V1LZ3")

    response = await client.post(
        "/api/v1/scrape", json={"url": "https://www.amazon.com/dp/B09B8V1LZ3"}, headers=auth_headers(make_user(1001))
    )

    assert response.status_code == 200
    assert response.json() == {
        "title": "Echo Dot (5th Gen)",
        "image_url": "https://m.media-amazon.com/images/I/echo.jpg",
        "price": 49.99,
        "currency": "USD",
        "description": None,
    }
    fake_redis.set.assert_awaited_once()


async def test_scrape_failure_still_returns_200(client: AsyncClient, make_user, auth_headers, fake_redis, mock_fetch):
    mock_fetch.side_effect = RemoteFetchFailed("HTTP 503")

    response = await client.post(
        "/api/v1/scrape",
        json={"url": "https://shop.example.com/product/garden-chair"},
        headers=auth_headers(make_user(1001)),
    )

    assert response.status_code == 200
    assert response.json()["title"] == "Garden Chair"
    assert response.json()["price"] is None


async def test_process_url_combines_affiliate_and_scrape(client: AsyncClient, make_user, auth_headers, fake_redis, mock_fetch):
    mock_fetch.return_value = (PAGE, "https://www.amazon.com/dp/B09B8V1LZ3")

    response = await client.post(
        "/api/v1/items/process-url",
        json={"url": "  https://www.amazon.com/dp/B09B8V1LZ3  "},
        headers=auth_headers(make_user(1001)),
    )

    data = response.json()
    assert data["url"] == "https://www.amazon.com/dp/B09B8V1LZ3"
    assert data["affiliate_url"] == "https://www.amazon.com/dp/B09B8V1LZ3?tag=wishbucket-20"
    assert data["has_affiliate"] is True
    assert data["program_name"] == "Amazon Associates"
    assert data["product_info"]["title"] == "Echo Dot (5th Gen)"
    # Парсим исходную страницу, а не партнерскую ссылку
    mock_fetch.assert_awaited_once_with("https://www.amazon.com/dp/B09B8V1LZ3")


async def test_scrape_requires_auth(client: AsyncClient, fake_redis):
    response = await client.post("/api/v1/scrape", json={"url": "https://example.com"})
    assert response.status_code == 401


async def test_affiliate_domains(client: AsyncClient, make_user, auth_headers):
    response = await client.get("/api/v1/affiliate/domains", headers=auth_headers(make_user(1001)))

    assert response.status_code == 200
    assert "amazon.com" in response.json()
    assert "aliexpress.com" in response.json()
