import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from kolayteklif.config import settings
from kolayteklif.exceptions import QuoteNotFoundError, QuoteValidationError
from kolayteklif.logging_config import setup_logging
from kolayteklif.rate_limit import limiter
from kolayteklif.routers import quotes_api, templates_api

# Loglama sistemini baslat (uygulama ayaga kalkmadan once)
setup_logging()

logger = logging.getLogger(__name__)

# FastAPI uygulamasini olustur
app = FastAPI(
    title=settings.APP_NAME,
    description="Teklif hazirlama, fiyatlandirma ve onay sureci",
    version="0.1.0",
)

logger.info("%s uygulamasi baslatiliyor (depo: %s)...", settings.APP_NAME, settings.QUOTE_STORAGE_BACKEND)

# slowapi'yi FastAPI state'e bagla
app.state.limiter = limiter

# ---------------------------------------------------------------------------
# CORS Ayarlari
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:8000"],
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)


# ---------------------------------------------------------------------------
# Guvenlik Header'lari Middleware
# ---------------------------------------------------------------------------
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Her yanita guvenlik header'lari ekler."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


app.add_middleware(SecurityHeadersMiddleware)


# ---------------------------------------------------------------------------
# Hata Yakalayicilar
# ---------------------------------------------------------------------------
@app.exception_handler(RateLimitExceeded)
async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Rate limit asildiginda kullaniciya uygun hata mesaji dondur."""
    logger.warning("Rate limit asildi: %s %s", request.method, request.url)
    return JSONResponse(
        status_code=429,
        content={
            "detail": "Cok fazla istek gonderdiniz. Lutfen biraz bekleyip tekrar deneyin.",
            "retry_after": exc.detail,
        },
    )


@app.exception_handler(QuoteValidationError)
async def quote_validation_error_handler(request: Request, exc: QuoteValidationError):
    """Motor validasyon hatalari: hangi alan, hangi kural."""
    logger.info("Validasyon hatasi: %s %s - %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=400, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Istek govdesi semaya uymuyor: motor hatalariyla ayni formatta dondur."""
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body") or "body",
            "constraint": error["type"],
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"detail": "Istek verisi gecersiz", "errors": errors},
    )


@app.exception_handler(QuoteNotFoundError)
async def quote_not_found_handler(request: Request, exc: QuoteNotFoundError):
    logger.warning("Bulunamadi: %s %s - %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Yakalanmamis hatalar (InvariantViolationError dahil) 500 doner."""
    logger.error("Yakalanmamis hata: %s %s", request.method, request.url, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Beklenmeyen bir hata olustu"})


# API Router'lari
app.include_router(quotes_api.router, prefix="/api/v1/quotes", tags=["Teklifler"])
app.include_router(templates_api.router, prefix="/api/v1/quote-templates", tags=["Teklif Sablonlari"])


@app.get("/")
def root():
    return {"app": settings.APP_NAME, "docs": "/docs"}
