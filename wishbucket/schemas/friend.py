# wishbucket/schemas/friend.py
from datetime import datetime

from wishbucket.schemas.user import PublicUser

class Friend(PublicUser):
    is_following: bool       # Я подписан на него
    is_followed_by: bool     # Он подписан на меня
    added_at: datetime | None = None
