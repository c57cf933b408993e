# wishbucket/routers/v1/api.py

from fastapi import APIRouter

from wishbucket.routers.v1.endpoints import (
    auth,
    crowdfunding,
    friends,
    gift_hint,
    notification,
    referral,
    scrape,
    secret_santa,
    user,
    wishlist,
)

# Главный роутер API версии v1.
# Все пути, подключенные к нему, будут иметь префикс /api/v1
api_router = APIRouter(prefix="/api/v1")

api_router.include_router(auth.router, tags=["Authentication"])
api_router.include_router(user.router, tags=["Users"])
api_router.include_router(referral.router, tags=["Referrals"])
api_router.include_router(friends.router, tags=["Friends"])
api_router.include_router(wishlist.router, tags=["Wishlists"])
api_router.include_router(crowdfunding.router, tags=["Crowdfunding"])
api_router.include_router(scrape.router, tags=["Scraping"])
api_router.include_router(notification.router, tags=["Notifications"])
api_router.include_router(gift_hint.router, tags=["Gift Hints"])
api_router.include_router(secret_santa.router, tags=["Secret Santa"])
