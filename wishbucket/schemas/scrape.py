# wishbucket/schemas/scrape.py
from pydantic import BaseModel, Field


class UrlRequest(BaseModel):
    url: str = Field(min_length=1, max_length=2048)

class ScrapedProductInfo(BaseModel):
    """Результат разбора страницы. Любое поле может отсутствовать."""
    title: str | None = None
    image_url: str | None = None
    price: float | None = None
    currency: str | None = None
    description: str | None = None

class AffiliateProgram(BaseModel):
    domain: str
    program_name: str
    referral_param: str

class AffiliateLink(BaseModel):
    url: str
    affiliate_url: str
    has_affiliate: bool
    program_name: str | None = None

class ProcessedUrl(AffiliateLink):
    product_info: ScrapedProductInfo
