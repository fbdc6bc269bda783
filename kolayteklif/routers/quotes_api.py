"""Teklif API router'i - teklif, kalem, durum gecisi ve versiyon islemleri."""
import uuid
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status

from kolayteklif.dependencies import get_actor, get_quote_service
from kolayteklif.exceptions import QuoteNotFoundError
from kolayteklif.rate_limit import limiter
from kolayteklif.schemas.quote import (
    ActivateRequest,
    BulkDeleteRequest,
    BulkDiscountRequest,
    CloseRequest,
    QuoteCreate,
    QuoteDetail,
    QuoteLineCreate,
    QuoteLineUpdate,
    QuoteListResponse,
    QuoteState,
    QuoteStatistics,
    QuoteUpdate,
    ValidationStatus,
)
from kolayteklif.schemas.version import (
    BulkOperationResult,
    QuoteVersion,
    QuoteVersionComparison,
    TransitionResult,
    VersionChangeType,
)
from kolayteklif.services.quote import QuoteService

router = APIRouter()

Service = Annotated[QuoteService, Depends(get_quote_service)]
Actor = Annotated[str, Depends(get_actor)]


@router.get("/stats", response_model=QuoteStatistics)
def quote_stats(service: Service):
    """
    Teklif istatistikleri.
    Duruma gore adetler, toplam / kazanilan / ortalama tutar ve kazanma orani.
    """
    return service.statistics()


@router.get("/versions/compare", response_model=QuoteVersionComparison)
def compare_versions(
    service: Service,
    from_version_id: uuid.UUID = Query(description="Eski versiyon"),
    to_version_id: uuid.UUID = Query(description="Yeni versiyon"),
):
    """Iki versiyon arasindaki farklar (teklif alanlari ve kalemler)."""
    comparison = service.compare_versions(from_version_id, to_version_id)
    if comparison is None:
        raise QuoteNotFoundError("Teklif versiyonu", f"{from_version_id} / {to_version_id}")
    return comparison


@router.get("/versions/{version_id}", response_model=QuoteVersion)
def get_version(version_id: uuid.UUID, service: Service):
    return service.get_version(version_id)


@router.get("", response_model=QuoteListResponse)
def list_quotes(
    service: Service,
    page: int = Query(default=1, ge=1, description="Sayfa numarasi"),
    size: int = Query(default=20, ge=1, le=100, description="Sayfa basi kayit"),
    search: str | None = Query(default=None, description="Arama (teklif no, teklif adi)"),
    state: QuoteState | None = Query(default=None, description="Durum filtresi"),
    sort: str | None = Query(default=None, description="Siralama (total_asc/total_desc/number_asc)"),
    customer_id: uuid.UUID | None = Query(default=None, description="Musteri (firma / kisi) filtresi"),
    opportunity_id: uuid.UUID | None = Query(default=None, description="Firsat filtresi"),
):
    """
    Teklif listesi.
    Sayfalama, arama, durum / musteri / firsat filtreleme ve siralama destekler.
    """
    return service.list_quotes(
        search=search, state=state, sort=sort, page=page, size=size,
        customer_id=customer_id, opportunity_id=opportunity_id,
    )


@router.post("", response_model=TransitionResult, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_quote(request: Request, data: QuoteCreate, service: Service, actor: Actor):
    """Yeni teklif olustur (taslak). Kalemler istege bagli."""
    return service.create_quote(data, created_by=actor)


@router.post(
    "/from-opportunity/{opportunity_id}", response_model=TransitionResult,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit("30/minute")
def create_from_opportunity(
    request: Request, opportunity_id: uuid.UUID, service: Service, actor: Actor
):
    """Satis firsatindan taslak teklif olustur (ad, aciklama ve musteri firsattan gelir)."""
    return service.create_from_opportunity(opportunity_id, created_by=actor)


@router.get("/{quote_id}", response_model=QuoteDetail)
def get_quote(quote_id: uuid.UUID, service: Service):
    """Teklif detayi (kalemleriyle birlikte)."""
    return service.get_quote_detail(quote_id)


@router.put("/{quote_id}", response_model=TransitionResult)
def update_quote(quote_id: uuid.UUID, data: QuoteUpdate, service: Service, actor: Actor):
    """Teklif bilgilerini guncelle. Sadece taslak teklifler duzenlenebilir."""
    return service.update_quote(quote_id, data, created_by=actor)


@router.delete("/{quote_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_quote(quote_id: uuid.UUID, service: Service):
    """Teklifi sil. Sadece taslak teklifler silinebilir."""
    if not service.delete_quote(quote_id):
        raise QuoteNotFoundError("Teklif", quote_id)


@router.post("/{quote_id}/clone", response_model=TransitionResult, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def clone_quote(request: Request, quote_id: uuid.UUID, service: Service, actor: Actor):
    """Teklifin taslak kopyasini olustur."""
    return service.clone_quote(quote_id, created_by=actor)


@router.get("/{quote_id}/validation", response_model=ValidationStatus)
def validation_status(quote_id: uuid.UUID, service: Service):
    """Teklif uzerinde hangi islemlerin yapilabilecegi."""
    return service.validation_status(quote_id)


# ---------------------------------------------------------------------------
# Kalemler
# ---------------------------------------------------------------------------

@router.post("/{quote_id}/lines", response_model=TransitionResult, status_code=status.HTTP_201_CREATED)
def add_line(quote_id: uuid.UUID, data: QuoteLineCreate, service: Service, actor: Actor):
    return service.add_line(quote_id, data, created_by=actor)


@router.put("/{quote_id}/lines/{line_id}", response_model=TransitionResult)
def update_line(
    quote_id: uuid.UUID,
    line_id: uuid.UUID,
    data: QuoteLineUpdate,
    service: Service,
    actor: Actor,
):
    return service.update_line(quote_id, line_id, data, created_by=actor)


@router.delete("/{quote_id}/lines/{line_id}", response_model=TransitionResult)
def remove_line(quote_id: uuid.UUID, line_id: uuid.UUID, service: Service, actor: Actor):
    result = service.remove_line(quote_id, line_id, created_by=actor)
    if result is None:
        raise QuoteNotFoundError("Teklif kalemi", line_id)
    return result


@router.post("/{quote_id}/lines/bulk-delete", response_model=BulkOperationResult)
def bulk_delete_lines(
    quote_id: uuid.UUID, data: BulkDeleteRequest, service: Service, actor: Actor
):
    """Secilen kalemleri toplu sil. Biri bile bulunamazsa hicbiri silinmez."""
    return service.bulk_delete(quote_id, data.line_ids, created_by=actor)


@router.post("/{quote_id}/lines/bulk-discount", response_model=BulkOperationResult)
def bulk_discount_lines(
    quote_id: uuid.UUID, data: BulkDiscountRequest, service: Service, actor: Actor
):
    """Secilen kalemlere toplu iskonto (percentage / amount) uygula."""
    return service.bulk_apply_discount(
        quote_id, data.line_ids, data.mode, data.value, created_by=actor,
    )


# ---------------------------------------------------------------------------
# Durum gecisleri
# ---------------------------------------------------------------------------

@router.post("/{quote_id}/activate", response_model=TransitionResult)
def activate_quote(
    quote_id: uuid.UUID, service: Service, actor: Actor, data: ActivateRequest | None = None
):
    """Taslak -> Aktif. Gecerlilik tarihleri zorunlu."""
    return service.activate(quote_id, created_by=actor, data=data)


@router.post("/{quote_id}/win", response_model=TransitionResult)
def win_quote(
    quote_id: uuid.UUID, service: Service, actor: Actor, data: CloseRequest | None = None
):
    """Aktif -> Kazanildi. Bagli firsat varsa o da kapatilir."""
    notes = data.closing_notes if data else None
    return service.win(quote_id, created_by=actor, closing_notes=notes)


@router.post("/{quote_id}/lose", response_model=TransitionResult)
def lose_quote(
    quote_id: uuid.UUID, service: Service, actor: Actor, data: CloseRequest | None = None
):
    notes = data.closing_notes if data else None
    return service.lose(quote_id, created_by=actor, closing_notes=notes)


@router.post("/{quote_id}/cancel", response_model=TransitionResult)
def cancel_quote(
    quote_id: uuid.UUID, service: Service, actor: Actor, data: CloseRequest | None = None
):
    reason = data.closing_notes if data else None
    return service.cancel(quote_id, created_by=actor, reason=reason)


@router.post("/{quote_id}/revise", response_model=TransitionResult)
def revise_quote(
    quote_id: uuid.UUID, service: Service, actor: Actor, data: CloseRequest | None = None
):
    """Aktif / Kapatildi -> Taslak (tekrar duzenlemek icin)."""
    reason = data.closing_notes if data else None
    return service.revise(quote_id, created_by=actor, reason=reason)


# ---------------------------------------------------------------------------
# Versiyon gecmisi
# ---------------------------------------------------------------------------

@router.get("/{quote_id}/versions", response_model=list[QuoteVersion])
def list_versions(
    quote_id: uuid.UUID,
    service: Service,
    change_type: VersionChangeType | None = Query(default=None, description="Degisiklik turu filtresi"),
    from_date: datetime | None = Query(default=None, description="Bu tarihten sonraki versiyonlar"),
    to_date: datetime | None = Query(default=None, description="Bu tarihten onceki versiyonlar"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
):
    """Versiyon listesi (en yeni once)."""
    return service.list_versions(
        quote_id, change_type=change_type, from_date=from_date, to_date=to_date,
        limit=limit, offset=offset,
    )


@router.get("/{quote_id}/versions/latest", response_model=QuoteVersion | None)
def latest_version(quote_id: uuid.UUID, service: Service):
    return service.get_latest_version(quote_id)


@router.get("/{quote_id}/versions/summary")
def version_summary(quote_id: uuid.UUID, service: Service):
    """Versiyon sayisi ve degisiklik turune gore dagilim."""
    return {
        "count": service.get_version_count(quote_id),
        "by_change_type": service.get_change_summary(quote_id),
    }


@router.post("/{quote_id}/versions/{version_id}/restore", response_model=TransitionResult)
def restore_version(
    quote_id: uuid.UUID, version_id: uuid.UUID, service: Service, actor: Actor
):
    """Taslak teklifi secilen versiyondaki haline geri dondur."""
    return service.restore_version(quote_id, version_id, created_by=actor)
