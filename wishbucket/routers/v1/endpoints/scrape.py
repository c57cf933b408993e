# wishbucket/routers/v1/endpoints/scrape.py
from fastapi import APIRouter, Depends, Request
from redis.asyncio import Redis

from wishbucket.core.limiter import limiter
from wishbucket.core.redis import get_redis_client
from wishbucket.dependencies import get_current_user
from wishbucket.models.user import User
from wishbucket.schemas.scrape import ProcessedUrl, ScrapedProductInfo, UrlRequest
from wishbucket.services import affiliate as affiliate_service
from wishbucket.services import scraper as scraper_service

router = APIRouter()


@router.post("/scrape", response_model=ScrapedProductInfo)
@limiter.limit("20/minute")
async def scrape_url(
    request: Request,
    payload: UrlRequest,
    current_user: User = Depends(get_current_user),
    redis: Redis = Depends(get_redis_client)
):
    """
    Пытается вытащить название, картинку и цену товара по ссылке.
    Всегда отвечает 200: если ничего не нашлось, поля просто пустые.
    """
    return await scraper_service.scrape_product(payload.url, redis=redis)


@router.post("/items/process-url", response_model=ProcessedUrl)
@limiter.limit("20/minute")
async def process_url(
    request: Request,
    payload: UrlRequest,
    current_user: User = Depends(get_current_user),
    redis: Redis = Depends(get_redis_client)
):
    """Партнерская ссылка и данные о товаре одним запросом, для формы добавления подарка."""
    link = affiliate_service.process_affiliate_link(payload.url.strip())
    product_info = await scraper_service.scrape_product(link.url, redis=redis)
    return ProcessedUrl(**link.model_dump(), product_info=product_info)


@router.get("/affiliate/domains", response_model=list[str])
async def list_affiliate_domains(current_user: User = Depends(get_current_user)):
    """Магазины, для которых мы умеем делать партнерские ссылки."""
    return affiliate_service.get_supported_domains()
