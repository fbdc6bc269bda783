"""
Satis firsati (Opportunity) servisi ile iletisim.

Teklif firsattan olusturulurken firsat bilgileri okunur.
Teklif kazanildiginda bagli firsat "kazanildi" olarak kapatilmaya calisilir.
Bu islem en iyi caba (best effort) ile yapilir: basarisiz olursa teklifin
kazanilmasi geri alinmaz, sadece uyari dondurulur.
"""
import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import Protocol

import httpx
from pydantic import BaseModel

from kolayteklif.config import settings
from kolayteklif.schemas.quote import CustomerRef, Money

logger = logging.getLogger(__name__)


class OpportunityCloseRequest(BaseModel):
    actual_revenue: Money
    actual_close_date: date


class OpportunityInfo(BaseModel):
    """Firsat servisinden okunan, teklif olusturmak icin gereken bilgiler."""
    name: str
    description: str | None = None
    customer: CustomerRef | None = None
    estimated_close_date: date | None = None


class OpportunityGateway(Protocol):

    def get_opportunity(self, opportunity_id: uuid.UUID) -> OpportunityInfo | None:
        """Firsat bulunamazsa veya servise ulasilamazsa None."""
        ...

    def close_opportunity_as_won(
        self, opportunity_id: uuid.UUID, request: OpportunityCloseRequest
    ) -> bool:
        """Basarili ise True. Hata firlatabilir; cagiran taraf yakalar."""
        ...


class HttpOpportunityClient:
    """
    Firsat servisine HTTP ile baglanir.
    GET  {base_url}/opportunities/{id}
    POST {base_url}/opportunities/{id}/win
    """

    def __init__(
        self,
        base_url: str,
        token: str = "",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.transport = transport

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def get_opportunity(self, opportunity_id: uuid.UUID) -> OpportunityInfo | None:
        url = f"{self.base_url}/opportunities/{opportunity_id}"
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.get(url, headers=self._headers())
        except httpx.HTTPError as e:
            logger.warning("Firsat servisine baglanilamadi: %s (%s)", url, e)
            return None

        if response.status_code == 404:
            return None
        if not 200 <= response.status_code < 300:
            logger.warning("Firsat okunamadi: %s -> HTTP %d", url, response.status_code)
            return None
        try:
            return OpportunityInfo.model_validate(response.json())
        except ValueError as e:
            logger.warning("Firsat yaniti okunamadi: %s (%s)", url, e)
            return None

    def close_opportunity_as_won(
        self, opportunity_id: uuid.UUID, request: OpportunityCloseRequest
    ) -> bool:
        headers = self._headers()
        url = f"{self.base_url}/opportunities/{opportunity_id}/win"
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(
                    url,
                    content=request.model_dump_json(),
                    headers=headers,
                )
        except httpx.TimeoutException:
            logger.warning(
                "Firsat servisi zaman asimi: %s (%s saniye)", url, self.timeout
            )
            return False
        except httpx.HTTPError as e:
            logger.warning("Firsat servisine baglanilamadi: %s (%s)", url, e)
            return False

        if not 200 <= response.status_code < 300:
            logger.warning(
                "Firsat kapatilamadi: %s -> HTTP %d %s",
                url, response.status_code, response.text[:200],
            )
            return False
        return True


class NullOpportunityClient:
    """Firsat servisi yapilandirilmamissa kullanilir; her zaman basarisiz doner."""

    def get_opportunity(self, opportunity_id: uuid.UUID) -> OpportunityInfo | None:
        logger.warning(
            "OPPORTUNITY_API_URL ayarlanmamis, firsat %s okunamadi", opportunity_id
        )
        return None

    def close_opportunity_as_won(
        self, opportunity_id: uuid.UUID, request: OpportunityCloseRequest
    ) -> bool:
        logger.warning(
            "OPPORTUNITY_API_URL ayarlanmamis, firsat %s kapatilamadi", opportunity_id
        )
        return False


def build_opportunity_client() -> OpportunityGateway:
    """Ayarlara gore firsat istemcisini olustur."""
    if settings.OPPORTUNITY_API_URL:
        return HttpOpportunityClient(
            settings.OPPORTUNITY_API_URL,
            token=settings.OPPORTUNITY_API_TOKEN,
            timeout=settings.OPPORTUNITY_TIMEOUT_SECONDS,
        )
    return NullOpportunityClient()


def close_linked_opportunity(
    gateway: OpportunityGateway,
    opportunity_id: uuid.UUID,
    actual_revenue: Decimal,
    close_date: date | None = None,
) -> str | None:
    """
    Firsati kazanildi olarak kapat.
    Basariliysa None, basarisizsa kullaniciya gosterilecek uyari mesaji doner.
    """
    request = OpportunityCloseRequest(
        actual_revenue=actual_revenue,
        actual_close_date=close_date or date.today(),
    )
    try:
        closed = gateway.close_opportunity_as_won(opportunity_id, request)
    except Exception as e:
        logger.warning("Bagli firsat %s guncellenemedi: %s", opportunity_id, e)
        closed = False

    if not closed:
        return (
            "Teklif kazanildi ancak bagli firsat kapatilamadi. "
            "Firsati elle kapatmaniz gerekebilir."
        )
    logger.info("Bagli firsat %s kazanildi olarak kapatildi", opportunity_id)
    return None
