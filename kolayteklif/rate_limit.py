"""Teklif API'si icin rate limiting (slowapi)."""

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from kolayteklif.config import settings


def actor_or_address(request: Request) -> str:
    """X-User-Id varsa kullanici basina, yoksa istemci IP'si basina sayilir."""
    actor = request.headers.get("X-User-Id")
    if actor:
        return f"user:{actor}"
    return get_remote_address(request)


# Genel limit RATE_LIMIT_DEFAULT; teklif olusturan endpoint'lerde ayrica 30/minute
limiter = Limiter(
    key_func=actor_or_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
)
