# wishbucket/services/scraper.py
"""
Извлечение данных о товаре (название, картинка, цена, валюта, описание)
по ссылке на страницу магазина.

Работает по принципу "сколько получится": любое поле может остаться пустым,
а наружу не выходит ни одна ошибка. Если страницу загрузить не удалось,
название пытаемся угадать по пути URL.
"""
import hashlib
import html
import json
import logging
import re
from urllib.parse import unquote, urljoin, urlsplit

from bs4 import BeautifulSoup
from redis.asyncio import Redis

from wishbucket.clients.web import PageFetcher, page_fetcher
from wishbucket.core.config import settings
from wishbucket.core.exceptions import RemoteFetchFailed
from wishbucket.schemas.scrape import ScrapedProductInfo

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "scrape:"

# Порядок важен: берется первое положительное число
PRICE_PATTERNS = [
    re.compile(r'"price":\s*"?(\d+(?:[.,]\d{2})?)'),
    re.compile(r'"offers"[^}]*"price":\s*"?(\d+(?:[.,]\d{2})?)'),
    re.compile(r'property="product:price:amount"[^>]*content="(\d+(?:[.,]\d{2})?)"', re.IGNORECASE),
    re.compile(r'itemprop="price"[^>]*content="(\d+(?:[.,]\d{2})?)"', re.IGNORECASE),
    re.compile(r'data-price="(\d+(?:[.,]\d{2})?)"', re.IGNORECASE),
    re.compile(r'class="[^"]*price[^"]*"[^>]*>[\s$€£¥]*(\d+(?:[.,]\d{2})?)', re.IGNORECASE),
]

CURRENCY_PATTERNS = [
    re.compile(r'"priceCurrency":\s*"([A-Z]{3})"'),
    re.compile(r'property="product:price:currency"[^>]*content="([A-Z]{3})"', re.IGNORECASE),
    re.compile(r'itemprop="priceCurrency"[^>]*content="([A-Z]{3})"', re.IGNORECASE),
]

CURRENCY_SYMBOLS = [("$", "USD"), ("€", "EUR"), ("£", "GBP"), ("₴", "UAH")]

# Сегменты пути, за которыми обычно идет slug товара
PRODUCT_PATH_MARKERS = {"product", "p", "item", "dp", "pd", "goods"}

ASIN_RE = re.compile(r"\b[A-Z0-9]{10}\b")
HEX_ID_RE = re.compile(r"\b[a-f0-9]{8,}\b", re.IGNORECASE)
EXTENSION_RE = re.compile(r"\.(html?|php|aspx?)$", re.IGNORECASE)


# --- Мета-теги ---

def _get_meta(soup: BeautifulSoup, key: str) -> str | None:
    """Значение content у <meta property=key> или <meta name=key>."""
    pattern = re.compile(f"^{re.escape(key)}$", re.IGNORECASE)
    tag = soup.find("meta", attrs={"property": pattern}) or soup.find("meta", attrs={"name": pattern})
    if tag is None:
        return None
    content = (tag.get("content") or "").strip()
    return content or None


def _first(*values):
    for value in values:
        if value:
            return value
    return None


# --- Цена и валюта ---

def _to_price(raw: str) -> float | None:
    try:
        price = float(raw.replace(",", "."))
    except ValueError:
        return None
    return price if price > 0 else None


def _parse_price_text(text: str) -> float | None:
    """Разбирает цену из видимого текста, например '$1,299.99' или '1.299,00 €'."""
    match = re.search(r"\d[\d.,\s]*", text)
    if not match:
        return None
    number = re.sub(r"\s", "", match.group(0)).rstrip(".,")
    if "," in number and "." in number:
        # Последний из разделителей - десятичный
        if number.rfind(",") > number.rfind("."):
            number = number.replace(".", "").replace(",", ".")
        else:
            number = number.replace(",", "")
    elif "," in number:
        head, _, tail = number.rpartition(",")
        number = f"{head.replace(',', '')}.{tail}" if len(tail) == 2 else number.replace(",", "")
    return _to_price(number)


def extract_price(raw_html: str) -> float | None:
    for pattern in PRICE_PATTERNS:
        match = pattern.search(raw_html)
        if match:
            price = _to_price(match.group(1))
            if price is not None:
                return price
    return None


def extract_currency(raw_html: str) -> str | None:
    for pattern in CURRENCY_PATTERNS:
        match = pattern.search(raw_html)
        if match:
            return match.group(1).upper()
    for symbol, code in CURRENCY_SYMBOLS:
        if symbol in raw_html:
            return code
    return None


# --- Amazon ---

def _iter_json_ld(soup: BeautifulSoup):
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        try:
            data = json.loads(script.string or "")
        except (json.JSONDecodeError, TypeError):
            continue
        stack = [data]
        while stack:
            node = stack.pop()
            if isinstance(node, list):
                stack.extend(node)
            elif isinstance(node, dict):
                yield node
                if "@graph" in node:
                    stack.append(node["@graph"])


def _is_product(node: dict) -> bool:
    node_type = node.get("@type")
    if isinstance(node_type, list):
        return "Product" in node_type
    return node_type == "Product"


def _json_ld_image(image) -> str | None:
    if isinstance(image, list):
        image = image[0] if image else None
    if isinstance(image, dict):
        image = image.get("url")
    return image if isinstance(image, str) else None


def extract_amazon_details(soup: BeautifulSoup) -> dict:
    """Данные со страницы Amazon: сначала JSON-LD Product, затем элементы DOM."""
    details = {}

    for node in _iter_json_ld(soup):
        if not _is_product(node):
            continue
        details["title"] = node.get("name")
        details["description"] = node.get("description")
        details["image_url"] = _json_ld_image(node.get("image"))
        offers = node.get("offers")
        if isinstance(offers, list):
            offers = offers[0] if offers else None
        if isinstance(offers, dict):
            price = offers.get("price") or offers.get("lowPrice")
            if price is not None:
                details["price"] = _to_price(str(price))
            details["currency"] = offers.get("priceCurrency")
        break

    if not details.get("title"):
        title_tag = soup.find(id="productTitle")
        if title_tag:
            details["title"] = title_tag.get_text(strip=True) or None

    if not details.get("image_url"):
        image_tag = soup.find(id="landingImage")
        if image_tag:
            details["image_url"] = image_tag.get("data-old-hires") or image_tag.get("src")

    if not details.get("price"):
        price_tag = soup.find(id=re.compile(r"^priceblock_")) or soup.select_one(".a-price .a-offscreen")
        if price_tag:
            price_text = price_tag.get_text(strip=True)
            details["price"] = _parse_price_text(price_text)
            if not details.get("currency"):
                details["currency"] = extract_currency(price_text)

    return {key: value for key, value in details.items() if value}


def _is_amazon(host: str) -> bool:
    return host == "amazon" or host.startswith("amazon.") or ".amazon." in f".{host}"


# --- Очистка ---

def _strip_site_name(title: str, site_name: str | None) -> str:
    if not site_name:
        return title
    escaped = re.escape(site_name)
    title = re.sub(rf"\s*[-|–—:]\s*{escaped}\s*$", "", title, flags=re.IGNORECASE)
    title = re.sub(rf"^{escaped}\s*[-|–—:]\s*", "", title, flags=re.IGNORECASE)
    return title.strip()


def _clean_text(value: str | None) -> str | None:
    if not value:
        return None
    value = re.sub(r"\s+", " ", html.unescape(value)).strip()
    return value or None


def extract_product_info(raw_html: str, page_url: str) -> ScrapedProductInfo:
    """Разбирает HTML страницы товара. Ничего не бросает на кривой разметке."""
    soup = BeautifulSoup(raw_html, "lxml")
    host = (urlsplit(page_url).hostname or "").lower()

    title = _first(_get_meta(soup, "og:title"), _get_meta(soup, "twitter:title"))
    description = _first(
        _get_meta(soup, "og:description"),
        _get_meta(soup, "twitter:description"),
        _get_meta(soup, "description"),
    )
    image_url = _first(_get_meta(soup, "og:image"), _get_meta(soup, "twitter:image"))
    site_name = _get_meta(soup, "og:site_name")
    price = None
    currency = None

    if _is_amazon(host):
        amazon = extract_amazon_details(soup)
        title = title or amazon.get("title")
        description = description or amazon.get("description")
        image_url = image_url or amazon.get("image_url")
        price = amazon.get("price")
        currency = amazon.get("currency")

    if not title and soup.title and soup.title.string:
        title = soup.title.string.strip()

    if price is None:
        price = extract_price(raw_html)
    if currency is None:
        currency = extract_currency(raw_html)

    title = _clean_text(title)
    if title:
        title = _strip_site_name(title, _clean_text(site_name)) or title

    if image_url:
        image_url = urljoin(page_url, image_url.strip())

    return ScrapedProductInfo(
        title=title,
        image_url=image_url,
        price=price,
        currency=currency,
        description=_clean_text(description),
    )


# --- Угадывание названия по URL ---

def guess_title_from_url(url: str) -> str | None:
    """
    Пытается получить читаемое название товара из пути URL:
    'https://shop.com/product/blue-winter-jacket.html' -> 'Blue Winter Jacket'.
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        return None
    host = (parts.hostname or "").lower()
    segments = [unquote(s) for s in parts.path.split("/") if s]
    product_name = ""

    if "amazon" in host:
        # /product-name/dp/ASIN или /dp/ASIN/product-name или /gp/product/ASIN
        marker_index = next((i for i, s in enumerate(segments) if s in ("dp", "gp")), -1)
        if marker_index > 0 and not ASIN_RE.fullmatch(segments[marker_index - 1]):
            product_name = segments[marker_index - 1]
        if not product_name and segments:
            last_segment = segments[-1]
            if not ASIN_RE.fullmatch(last_segment) and last_segment not in ("dp", "ref"):
                product_name = last_segment
    else:
        for i, segment in enumerate(segments[:-1]):
            if segment.lower() in PRODUCT_PATH_MARKERS:
                product_name = segments[i + 1]
                break
        if not product_name and segments:
            product_name = segments[-1]

    product_name = EXTENSION_RE.sub("", product_name)
    product_name = re.sub(r"[-_]", " ", product_name)
    product_name = ASIN_RE.sub("", product_name)
    product_name = HEX_ID_RE.sub("", product_name)
    product_name = re.sub(r"\s+", " ", product_name).strip()
    if not product_name:
        return None

    product_name = " ".join(word[:1].upper() + word[1:].lower() for word in product_name.split(" "))

    domain_name = host.removeprefix("www.").split(".")[0]
    if product_name.lower() == domain_name:
        return None
    return product_name


# --- Точка входа ---

def _cache_key(url: str) -> str:
    return CACHE_KEY_PREFIX + hashlib.sha256(url.encode()).hexdigest()


def _is_http_url(url: str) -> bool:
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.hostname)


async def scrape_product(
    url: str,
    redis: Redis | None = None,
    fetcher: PageFetcher = page_fetcher,
) -> ScrapedProductInfo:
    """
    Возвращает данные о товаре по ссылке. Результат кешируется в Redis,
    ошибки кеша игнорируются.
    """
    url = url.strip()
    if not _is_http_url(url):
        logger.info(f"Skipping scrape of unsupported URL: {url!r}")
        return ScrapedProductInfo()

    cache_key = _cache_key(url)
    if redis is not None:
        try:
            cached = await redis.get(cache_key)
            if cached:
                return ScrapedProductInfo.model_validate(json.loads(cached))
        except Exception as e:
            logger.warning(f"Failed to read scrape cache for {url}: {e}")

    try:
        raw_html, final_url = await fetcher.fetch_html(url)
    except RemoteFetchFailed as e:
        logger.info(f"Could not fetch {url}: {e}. Falling back to URL parsing.")
        return ScrapedProductInfo(title=guess_title_from_url(url))
    except Exception:
        logger.error(f"Unexpected error while fetching {url}", exc_info=True)
        return ScrapedProductInfo(title=guess_title_from_url(url))

    try:
        info = extract_product_info(raw_html, final_url)
    except Exception:
        logger.error(f"Failed to parse product page {url}", exc_info=True)
        info = ScrapedProductInfo()

    if not info.title:
        info.title = guess_title_from_url(url)

    if redis is not None:
        try:
            await redis.set(cache_key, info.model_dump_json(), ex=settings.SCRAPE_CACHE_TTL_SECONDS)
        except Exception as e:
            logger.warning(f"Failed to write scrape cache for {url}: {e}")

    return info
