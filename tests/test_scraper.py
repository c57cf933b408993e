# tests/test_scraper.py

import json
from unittest.mock import AsyncMock

import httpx
import pytest

from wishbucket.clients.web import PageFetcher
from wishbucket.schemas.scrape import ScrapedProductInfo
from wishbucket.services import scraper as scraper_service

PRODUCT_PAGE = """
<html>
<head>
  <title>Fallback title</title>
  <meta property="og:title" content="Cozy Wool Blanket &amp; Pillow | HomeStore">
  <meta property="og:site_name" content="HomeStore">
  <meta property="og:description" content="Soft  and   warm">
  <meta property="og:image" content="/images/blanket.jpg">
  <meta property="product:price:amount" content="49,99">
  <meta property="product:price:currency" content="EUR">
</head>
<body><h1>Cozy Wool Blanket</h1></body>
</html>
"""

AMAZON_PAGE = """
<html>
<head><title>Amazon.com: Echo Dot</title></head>
<body>
  <script type="application/ld+json">
    {"@context": "https://schema.org", "@type": "Product", "name": "Echo Dot (5th Gen)",
     "image": ["https://m.media-amazon.com/images/I/echo.jpg"],
     "offers": {"@type": "Offer", "price": "49.99", "priceCurrency": "USD"}}
  </script>
  <span id="productTitle">  Echo Dot DOM title  </span>
</body>
</html>
"""

AMAZON_DOM_PAGE = """
<html>
<head><title>Amazon.com</title></head>
<body>
  <span id="productTitle">  Kindle Paperwhite  </span>
  <img id="landingImage" src="https://m.media-amazon.com/small.jpg" data-old-hires="https://m.media-amazon.com/large.jpg">
  <span class="a-price"><span class="a-offscreen">$1,299.99</span></span>
</body>
</html>
"""


def make_fetcher(handler) -> PageFetcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)
    return PageFetcher(timeout=5, max_bytes=1024 * 1024, user_agent="test", client=client)


def html_response(body: str, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, text=body, headers={"content-type": "text/html; charset=utf-8"})


async def test_open_graph_page_is_parsed():
    fetcher = make_fetcher(lambda request: html_response(PRODUCT_PAGE))

    info = await scraper_service.scrape_product("https://shop.example.com/p/blanket", fetcher=fetcher)

    assert info.title == "Cozy Wool Blanket & Pillow"
    assert info.description == "Soft and warm"
    assert info.image_url == "https://shop.example.com/images/blanket.jpg"
    assert info.price == 49.99
    assert info.currency == "EUR"


async def test_amazon_json_ld_product():
    fetcher = make_fetcher(lambda request: html_response(AMAZON_PAGE))

    info = await scraper_service.scrape_product("https://www.amazon.com/dp/B09B8V1LZ3", fetcher=fetcher)

    assert info.title == "Echo Dot (5th Gen)"
    assert info.image_url == "https://m.media-amazon.com/images/I/echo.jpg"
    assert info.price == 49.99
    assert info.currency == "USD"


async def test_amazon_dom_fallback():
    fetcher = make_fetcher(lambda request: html_response(AMAZON_DOM_PAGE))

    info = await scraper_service.scrape_product("https://www.amazon.de/dp/B08KTZ8249", fetcher=fetcher)

    assert info.title == "Kindle Paperwhite"
    assert info.image_url == "https://m.media-amazon.com/large.jpg"
    assert info.price == 1299.99
    assert info.currency == "USD"


async def test_not_found_falls_back_to_url_guess():
    fetcher = make_fetcher(lambda request: html_response("<html>gone</html>", status_code=404))

    info = await scraper_service.scrape_product(
        "https://shop.example.com/product/blue-winter-jacket.html", fetcher=fetcher
    )

    assert info == ScrapedProductInfo(title="Blue Winter Jacket")


async def test_non_html_response_falls_back_to_url_guess():
    fetcher = make_fetcher(
        lambda request: httpx.Response(200, content=b"%PDF-1.4", headers={"content-type": "application/pdf"})
    )

    info = await scraper_service.scrape_product("https://shop.example.com/item/red-mug", fetcher=fetcher)

    assert info.title == "Red Mug"
    assert info.price is None


async def test_network_error_never_raises():
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    info = await scraper_service.scrape_product("https://shop.example.com/goods/desk-lamp", fetcher=make_fetcher(handler))

    assert info.title == "Desk Lamp"


@pytest.mark.parametrize("url", ["not a url", "ftp://example.com/file", ""])
async def test_unsupported_url_returns_empty_info(url):
    fetcher = make_fetcher(lambda request: pytest.fail("must not fetch"))

    assert await scraper_service.scrape_product(url, fetcher=fetcher) == ScrapedProductInfo()


async def test_result_is_cached():
    calls = []

    def handler(request):
        calls.append(request.url)
        return html_response(PRODUCT_PAGE)

    redis = AsyncMock()
    redis.get.return_value = None

    info = await scraper_service.scrape_product("https://shop.example.com/p/blanket", redis=redis, fetcher=make_fetcher(handler))

    redis.set.assert_awaited_once()
    key, payload = redis.set.call_args.args
    assert key.startswith("scrape:")
    assert redis.set.call_args.kwargs["ex"] == 6 * 60 * 60
    assert json.loads(payload)["title"] == info.title

    redis.get.return_value = payload
    cached = await scraper_service.scrape_product("https://shop.example.com/p/blanket", redis=redis, fetcher=make_fetcher(handler))
    assert cached == info
    assert len(calls) == 1


async def test_cache_errors_are_ignored():
    redis = AsyncMock()
    redis.get.side_effect = ConnectionError("redis is down")
    redis.set.side_effect = ConnectionError("redis is down")
    fetcher = make_fetcher(lambda request: html_response(PRODUCT_PAGE))

    info = await scraper_service.scrape_product("https://shop.example.com/p/blanket", redis=redis, fetcher=fetcher)

    assert info.title == "Cozy Wool Blanket & Pillow"


# --- Отдельные шаги разбора ---

def test_price_patterns_in_order():
    raw = '<div data-price="15.00"></div><span itemprop="price" content="12.50"></span>'
    assert scraper_service.extract_price(raw) == 12.50


def test_zero_price_is_skipped():
    raw = '"price": "0", <div data-price="7,25"></div>'
    assert scraper_service.extract_price(raw) == 7.25


@pytest.mark.parametrize("raw, expected", [
    ('"priceCurrency": "GBP"', "GBP"),
    ('<meta itemprop="priceCurrency" content="UAH">', "UAH"),
    ("Only 20 € today", "EUR"),
    ("Ціна 999 ₴", "UAH"),
    ("no currency here", None),
])
def test_currency_detection(raw, expected):
    assert scraper_service.extract_currency(raw) == expected


def test_title_fallback_to_title_tag():
    info = scraper_service.extract_product_info(
        "<html><head><title> HomeStore - Garden Chair </title>"
        '<meta property="og:site_name" content="HomeStore"></head></html>',
        "https://homestore.example/chair",
    )
    assert info.title == "Garden Chair"


@pytest.mark.parametrize("url, expected", [
    ("https://www.amazon.com/Apple-AirPods-Pro/dp/B0BDHWDR12", "Apple Airpods Pro"),
    ("https://www.amazon.com/dp/B0BDHWDR12", None),
    ("https://shop.example.com/catalog/item/wooden-toy-train_3fa85f64c2", "Wooden Toy Train"),
    ("https://example.com/", None),
    ("https://zara.com/zara", None),
    ("https://shop.example.com/goods/smart%20watch.php", "Smart Watch"),
])
def test_guess_title_from_url(url, expected):
    assert scraper_service.guess_title_from_url(url) == expected
