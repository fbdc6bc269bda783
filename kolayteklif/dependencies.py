from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from kolayteklif.config import settings
from kolayteklif.database import get_db
from kolayteklif.repositories.base import QuoteRepository
from kolayteklif.repositories.memory import InMemoryQuoteRepository
from kolayteklif.repositories.sql import SqlQuoteRepository
from kolayteklif.services.opportunity import OpportunityGateway, build_opportunity_client
from kolayteklif.services.quote import QuoteService
from kolayteklif.services.template import QuoteTemplateService

# "memory" modunda tum istekler ayni depoyu paylasir (uygulama kapaninca silinir)
_memory_repository = InMemoryQuoteRepository()


def get_quote_repository(db: Annotated[Session, Depends(get_db)]) -> QuoteRepository:
    """
    Ayarlara gore teklif deposunu sec.
    database: SQLAlchemy oturumu uzerinden PostgreSQL / SQLite
    memory:   uygulama omru boyunca bellekte tutulan demo deposu
    """
    if settings.QUOTE_STORAGE_BACKEND == "memory":
        return _memory_repository
    return SqlQuoteRepository(db)


def get_opportunity_client() -> OpportunityGateway:
    return build_opportunity_client()


def get_quote_service(
    repository: Annotated[QuoteRepository, Depends(get_quote_repository)],
    opportunity_client: Annotated[OpportunityGateway, Depends(get_opportunity_client)],
) -> QuoteService:
    return QuoteService(repository, opportunity_client)


def get_actor(x_user_id: Annotated[str | None, Header()] = None) -> str:
    """Islemi yapan kullanici. X-User-Id header'i yoksa 'anonymous'."""
    return x_user_id or "anonymous"


def get_template_service(
    quote_service: Annotated[QuoteService, Depends(get_quote_service)],
) -> QuoteTemplateService:
    return QuoteTemplateService(quote_service)
