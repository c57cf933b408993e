# wishbucket/clients/web.py

import logging

import httpx

from wishbucket.core.config import settings
from wishbucket.core.exceptions import RemoteFetchFailed

logger = logging.getLogger(__name__)

HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")


class PageFetcher:
    """
    Асинхронный клиент для загрузки HTML-страниц товаров.
    Притворяется обычным браузером: многие магазины отдают пустую
    страницу или капчу клиентам без User-Agent.
    """
    def __init__(
        self,
        timeout: float,
        max_bytes: int,
        user_agent: str,
        client: httpx.AsyncClient | None = None,
    ):
        self.max_bytes = max_bytes
        self.async_client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
            headers={
                "User-Agent": user_agent,
                "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
                "Accept-Language": "en-US,en;q=0.5",
            },
        )

    async def fetch_html(self, url: str) -> tuple[str, str]:
        """
        Загружает страницу. Возвращает (HTML, итоговый URL после редиректов).
        Ответ не 2xx, не HTML или сетевая ошибка - RemoteFetchFailed.
        """
        try:
            async with self.async_client.stream("GET", url) as response:
                if not response.is_success:
                    raise RemoteFetchFailed(f"HTTP {response.status_code} for {url}")

                content_type = response.headers.get("content-type", "").lower()
                if content_type and not content_type.startswith(HTML_CONTENT_TYPES):
                    raise RemoteFetchFailed(f"Unexpected content type '{content_type}' for {url}")

                body = bytearray()
                async for chunk in response.aiter_bytes():
                    body.extend(chunk)
                    if len(body) >= self.max_bytes:
                        logger.debug(f"Response from {url} truncated at {self.max_bytes} bytes.")
                        break

                encoding = response.encoding or "utf-8"
                return bytes(body[:self.max_bytes]).decode(encoding, errors="replace"), str(response.url)
        except httpx.RequestError as e:
            logger.warning(f"Network error during GET request to {url!r}: {e}")
            raise RemoteFetchFailed(str(e)) from e

    async def aclose(self):
        await self.async_client.aclose()


# Создаем синглтон
page_fetcher = PageFetcher(
    timeout=settings.SCRAPE_TIMEOUT_SECONDS,
    max_bytes=settings.SCRAPE_MAX_BYTES,
    user_agent=settings.SCRAPE_USER_AGENT,
)
