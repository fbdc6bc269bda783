"""
Teklif sablonu servisi.

Sablon: tekrar kullanilabilir teklif icerigi (ad, aciklama, tarihler, kalemler).
Mevcut bir teklif sablon olarak kaydedilebilir; sablondan olusan teklif
normal bir taslak tekliftir ve kendi 'created' versiyonu ile baslar.
"""
import logging
import uuid

from kolayteklif.exceptions import QuoteNotFoundError, QuoteValidationError
from kolayteklif.schemas.template import (
    ApplyTemplateRequest,
    QuoteTemplate,
    QuoteTemplateCreate,
    QuoteTemplateUpdate,
    SaveAsTemplateRequest,
    TemplateData,
    TemplateLine,
)
from kolayteklif.schemas.version import TransitionResult
from kolayteklif.services import state_machine
from kolayteklif.services.quote import QuoteService, parse_input

logger = logging.getLogger(__name__)


def _validate_template_data(data: TemplateData) -> None:
    """Sablondan olusacak teklif de ayni kurallardan gecmeli."""
    state_machine.validate_date_range(data.effective_from, data.effective_to)
    for index, line in enumerate(data.lines):
        base = line.unit_price * line.quantity
        if line.manual_discount > base:
            raise QuoteValidationError.single(
                f"template_data.lines.{index}.manual_discount", "le_base_amount",
                f"Iskonto ({line.manual_discount}) kalem tutarini ({base}) asamaz",
            )


class QuoteTemplateService:
    """Sablon islemleri. Teklif olusturma icin QuoteService kullanilir."""

    def __init__(self, quote_service: QuoteService):
        self.quotes = quote_service
        self.repository = quote_service.repository

    def get_template(self, template_id: uuid.UUID) -> QuoteTemplate:
        template = self.repository.load_template(template_id)
        if template is None:
            raise QuoteNotFoundError("Teklif sablonu", template_id)
        return template

    def list_templates(
        self, shared: bool | None = None, owner: str | None = None
    ) -> list[QuoteTemplate]:
        return self.repository.list_templates(shared=shared, owner=owner)

    def create_template(
        self, data: QuoteTemplateCreate | dict, owner: str = "anonymous"
    ) -> QuoteTemplate:
        data = parse_input(QuoteTemplateCreate, data)
        _validate_template_data(data.template_data)

        now = self.quotes._now()
        template = QuoteTemplate(
            name=data.name,
            description=data.description,
            category=data.category,
            template_data=data.template_data,
            owner=owner,
            is_shared=data.is_shared,
            created_on=now,
            modified_on=now,
        )
        with self.repository.transaction():
            self.repository.save_template(template)

        logger.info(
            "Teklif sablonu '%s' olusturuldu (%d kalem)",
            template.name, len(template.template_data.lines),
        )
        return template

    def update_template(
        self, template_id: uuid.UUID, data: QuoteTemplateUpdate | dict
    ) -> QuoteTemplate:
        data = parse_input(QuoteTemplateUpdate, data)
        updates = {
            field: getattr(data, field)
            for field in data.model_dump(exclude_unset=True)
            if getattr(data, field) is not None
        }

        with self.repository.transaction():
            template = self.get_template(template_id)
            if not updates:
                return template
            if "template_data" in updates:
                _validate_template_data(updates["template_data"])
            template = template.model_copy(update={**updates, "modified_on": self.quotes._now()})
            self.repository.save_template(template)

        logger.info("Teklif sablonu '%s' guncellendi: %s", template.name, ", ".join(updates))
        return template

    def delete_template(self, template_id: uuid.UUID) -> bool:
        """Sablonu sil. Sablondan olusmus teklifler etkilenmez. Yoksa False."""
        with self.repository.transaction():
            deleted = self.repository.delete_template(template_id)
        if deleted:
            logger.info("Teklif sablonu silindi: %s", template_id)
        return deleted

    def save_quote_as_template(
        self, data: SaveAsTemplateRequest | dict, owner: str = "anonymous"
    ) -> QuoteTemplate:
        """
        Mevcut teklifi (hangi durumda olursa olsun) sablon olarak kaydet.
        Teklif alanlari ve kalemler kopyalanir; musteri ve firsat kopyalanmaz.
        """
        data = parse_input(SaveAsTemplateRequest, data)
        detail = self.quotes.get_quote_detail(data.quote_id)
        quote = detail.quote

        template_data = TemplateData(
            name=quote.name,
            description=quote.description,
            effective_from=quote.effective_from,
            effective_to=quote.effective_to,
            lines=[
                TemplateLine(
                    product_id=line.product_id,
                    description=line.description,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    manual_discount=line.manual_discount,
                    tax=line.tax,
                )
                for line in detail.lines
            ],
        )
        template = self.create_template(
            QuoteTemplateCreate(
                name=data.name,
                description=data.description,
                category=data.category,
                template_data=template_data,
                is_shared=data.is_shared,
            ),
            owner=owner,
        )
        logger.info("Teklif '%s' sablon olarak kaydedildi: '%s'", quote.quote_number, template.name)
        return template

    def create_quote_from_template(
        self,
        template_id: uuid.UUID,
        overrides: ApplyTemplateRequest | dict | None = None,
        created_by: str = "anonymous",
    ) -> TransitionResult:
        """
        Sablondan taslak teklif olustur ve sablonun kullanim sayisini artir.
        Ad ve aciklama istekte verilirse sablondakinin yerine kullanilir.
        Teklif olusturulamazsa kullanim sayisi da degismez.
        """
        overrides = parse_input(ApplyTemplateRequest, overrides or {})

        with self.repository.transaction():
            template = self.get_template(template_id)
            content = template.template_data

            self.repository.save_template(template.model_copy(update={
                "usage_count": template.usage_count + 1,
                "modified_on": self.quotes._now(),
            }))
            result = self.quotes.create_quote(
                {
                    "name": overrides.name or content.name,
                    "description": overrides.description or content.description,
                    "customer": overrides.customer,
                    "opportunity_id": overrides.opportunity_id,
                    "effective_from": content.effective_from,
                    "effective_to": content.effective_to,
                    "lines": [line.model_dump() for line in content.lines],
                },
                created_by=created_by,
                change_description=f"Teklif '{template.name}' sablonundan olusturuldu",
            )

        logger.info(
            "Teklif '%s' sablondan olusturuldu: '%s'", result.quote.quote_number, template.name,
        )
        return result
