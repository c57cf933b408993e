# wishbucket/core/exceptions.py
"""
Доменные ошибки. Все они - наследники HTTPException, поэтому сервисный слой
может просто бросать их, а FastAPI сам превратит их в ответ {"detail": ...}.
"""
from fastapi import HTTPException, status


class NotAuthenticated(HTTPException):
    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class InvalidCode(HTTPException):
    def __init__(self):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail="Invalid referral code")


class SelfReferralNotAllowed(HTTPException):
    def __init__(self):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot use your own referral code")


class AlreadyRedeemed(HTTPException):
    def __init__(self):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail="You have already used a referral code")


class PersistenceFailure(HTTPException):
    def __init__(self, detail: str = "Failed to save changes. Please try again later."):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


class RemoteFetchFailed(Exception):
    """
    Не удалось получить стороннюю страницу или доставить сообщение.
    Наружу не пробрасывается: ловится и логируется там, где возникла.
    """
