"""Teklif sablonu API router'i."""
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status

from kolayteklif.dependencies import get_actor, get_template_service
from kolayteklif.exceptions import QuoteNotFoundError
from kolayteklif.rate_limit import limiter
from kolayteklif.schemas.template import (
    ApplyTemplateRequest,
    QuoteTemplate,
    QuoteTemplateCreate,
    QuoteTemplateUpdate,
    SaveAsTemplateRequest,
)
from kolayteklif.schemas.version import TransitionResult
from kolayteklif.services.template import QuoteTemplateService

router = APIRouter()

TemplateService = Annotated[QuoteTemplateService, Depends(get_template_service)]
Actor = Annotated[str, Depends(get_actor)]


@router.get("", response_model=list[QuoteTemplate])
def list_templates(
    service: TemplateService,
    shared: bool | None = Query(default=None, description="Sadece paylasilan / paylasilmayan"),
    owner: str | None = Query(default=None, description="Sablon sahibi"),
):
    return service.list_templates(shared=shared, owner=owner)


@router.post("", response_model=QuoteTemplate, status_code=status.HTTP_201_CREATED)
def create_template(data: QuoteTemplateCreate, service: TemplateService, actor: Actor):
    return service.create_template(data, owner=actor)


@router.post("/from-quote", response_model=QuoteTemplate, status_code=status.HTTP_201_CREATED)
def save_quote_as_template(data: SaveAsTemplateRequest, service: TemplateService, actor: Actor):
    """Mevcut teklifi (kalemleriyle) sablon olarak kaydet."""
    return service.save_quote_as_template(data, owner=actor)


@router.get("/{template_id}", response_model=QuoteTemplate)
def get_template(template_id: uuid.UUID, service: TemplateService):
    return service.get_template(template_id)


@router.patch("/{template_id}", response_model=QuoteTemplate)
def update_template(template_id: uuid.UUID, data: QuoteTemplateUpdate, service: TemplateService):
    return service.update_template(template_id, data)


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_template(template_id: uuid.UUID, service: TemplateService):
    if not service.delete_template(template_id):
        raise QuoteNotFoundError("Teklif sablonu", template_id)


@router.post("/{template_id}/use", response_model=TransitionResult, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_quote_from_template(
    request: Request,
    template_id: uuid.UUID,
    service: TemplateService,
    actor: Actor,
    data: ApplyTemplateRequest | None = None,
):
    """Sablondan taslak teklif olustur. Ad, aciklama, musteri ve firsat verilebilir."""
    return service.create_quote_from_template(template_id, data, created_by=actor)
