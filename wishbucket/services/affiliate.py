# wishbucket/services/affiliate.py
"""
Партнерские ссылки: к URL товара известного магазина добавляется
параметр с нашим ID партнера.

Программа считается подключенной, только если ее ID задан в настройках
(AFFILIATE_IDS_JSON, домен -> ID).
"""
import logging
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from wishbucket.core.config import settings
from wishbucket.schemas.scrape import AffiliateLink, AffiliateProgram

logger = logging.getLogger(__name__)

AFFILIATE_PROGRAMS: list[AffiliateProgram] = [
    AffiliateProgram(domain="amazon.com", program_name="Amazon Associates", referral_param="tag"),
    AffiliateProgram(domain="amazon.co.uk", program_name="Amazon Associates UK", referral_param="tag"),
    AffiliateProgram(domain="amazon.de", program_name="Amazon Associates DE", referral_param="tag"),
    AffiliateProgram(domain="amazon.in", program_name="Amazon Associates India", referral_param="tag"),
    AffiliateProgram(domain="aliexpress.com", program_name="AliExpress Portals", referral_param="aff_id"),
    AffiliateProgram(domain="ebay.com", program_name="eBay Partner Network", referral_param="campid"),
    AffiliateProgram(domain="etsy.com", program_name="Etsy Affiliate (Awin)", referral_param="ref"),
    # Китай / Азия
    AffiliateProgram(domain="banggood.com", program_name="Banggood Affiliate", referral_param="p"),
    AffiliateProgram(domain="gearbest.com", program_name="GearBest Affiliate", referral_param="ref"),
    AffiliateProgram(domain="dhgate.com", program_name="DHgate Affiliate", referral_param="f"),
    AffiliateProgram(domain="lightinthebox.com", program_name="LightInTheBox Affiliate", referral_param="litb_from"),
    AffiliateProgram(domain="shein.com", program_name="SHEIN Affiliate", referral_param="ref"),
    AffiliateProgram(domain="temu.com", program_name="Temu Affiliate", referral_param="refer_code"),
    # Индия
    AffiliateProgram(domain="flipkart.com", program_name="Flipkart Affiliate", referral_param="affid"),
    AffiliateProgram(domain="myntra.com", program_name="Myntra Affiliate", referral_param="ref"),
    AffiliateProgram(domain="ajio.com", program_name="AJIO Affiliate", referral_param="ref"),
    # Украина / СНГ
    AffiliateProgram(domain="rozetka.com.ua", program_name="Rozetka Affiliate", referral_param="ref"),
    AffiliateProgram(domain="prom.ua", program_name="Prom.ua Affiliate", referral_param="ref"),
    AffiliateProgram(domain="wildberries.ru", program_name="Wildberries Affiliate", referral_param="ref"),
    AffiliateProgram(domain="ozon.ru", program_name="Ozon Affiliate", referral_param="partner"),
    AffiliateProgram(domain="lamoda.ru", program_name="Lamoda Affiliate", referral_param="ref"),
    # Одежда
    AffiliateProgram(domain="asos.com", program_name="ASOS Affiliate", referral_param="affid"),
    AffiliateProgram(domain="zara.com", program_name="Zara Affiliate (Awin)", referral_param="ref"),
    AffiliateProgram(domain="hm.com", program_name="H&M Affiliate", referral_param="ref"),
    AffiliateProgram(domain="nike.com", program_name="Nike Affiliate", referral_param="ref"),
    AffiliateProgram(domain="adidas.com", program_name="Adidas Affiliate", referral_param="ref"),
    # Электроника
    AffiliateProgram(domain="geekbuying.com", program_name="GeekBuying Affiliate", referral_param="ref"),
    AffiliateProgram(domain="tomtop.com", program_name="TomTop Affiliate", referral_param="aid"),
    # Косметика
    AffiliateProgram(domain="iherb.com", program_name="iHerb Affiliate", referral_param="rcode"),
    AffiliateProgram(domain="lookfantastic.com", program_name="LookFantastic Affiliate", referral_param="ref"),
    # Путешествия
    AffiliateProgram(domain="booking.com", program_name="Booking.com Affiliate", referral_param="aid"),
]


def get_supported_domains() -> list[str]:
    return [program.domain for program in AFFILIATE_PROGRAMS]


def extract_domain(url: str) -> str | None:
    """Хост без 'www.' или None, если это не http(s)-ссылка."""
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return None
    if parts.scheme not in ("http", "https") or not parts.hostname:
        return None
    host = parts.hostname.lower()
    if host.startswith("www."):
        host = host[len("www."):]
    return host


def find_affiliate_program(domain: str) -> tuple[AffiliateProgram, str] | None:
    """Подключенная программа для домена (или его поддомена) и наш ID в ней."""
    affiliate_ids = settings.AFFILIATE_IDS
    for program in AFFILIATE_PROGRAMS:
        if domain != program.domain and not domain.endswith("." + program.domain):
            continue
        referral_id = affiliate_ids.get(program.domain)
        if referral_id:
            return program, referral_id
    return None


def add_affiliate_param(url: str, param: str, referral_id: str) -> str:
    """Добавляет параметр к URL. Если параметр уже есть - URL не меняется."""
    parts = urlsplit(url)
    query = parse_qsl(parts.query, keep_blank_values=True)
    if any(key == param for key, _ in query):
        return url
    query.append((param, referral_id))
    return urlunsplit(parts._replace(query=urlencode(query)))


def strip_affiliate_param(url: str) -> str:
    """Убирает из URL наш собственный партнерский параметр. Чужие значения не трогаем."""
    domain = extract_domain(url)
    if not domain:
        return url
    match = find_affiliate_program(domain)
    if not match:
        return url
    program, referral_id = match
    parts = urlsplit(url)
    query = parse_qsl(parts.query, keep_blank_values=True)
    cleaned = [(key, value) for key, value in query if not (key == program.referral_param and value == referral_id)]
    if len(cleaned) == len(query):
        return url
    return urlunsplit(parts._replace(query=urlencode(cleaned)))


def process_affiliate_link(url: str) -> AffiliateLink:
    domain = extract_domain(url)
    if not domain:
        return AffiliateLink(url=url, affiliate_url=url, has_affiliate=False)

    match = find_affiliate_program(domain)
    if not match:
        return AffiliateLink(url=url, affiliate_url=url, has_affiliate=False)

    program, referral_id = match
    try:
        affiliate_url = add_affiliate_param(url, program.referral_param, referral_id)
    except ValueError:
        logger.warning(f"Could not rewrite URL for {program.program_name}: {url}")
        return AffiliateLink(url=url, affiliate_url=url, has_affiliate=False)

    logger.debug(f"Affiliate link for {domain} via {program.program_name}")
    return AffiliateLink(
        url=url,
        affiliate_url=affiliate_url,
        has_affiliate=True,
        program_name=program.program_name,
    )
