from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config.config import settings


def client_key(request: Request) -> str:
    """First X-Forwarded-For hop when the admin API sits behind a proxy"""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


limiter = Limiter(key_func=client_key, enabled=not settings.TEST)
