"""SQLAlchemy tabanli teklif deposu."""
import logging
import uuid
from contextlib import contextmanager

from sqlalchemy import Integer, cast, func, or_
from sqlalchemy.orm import Session

from kolayteklif.exceptions import InvariantViolationError
from kolayteklif.models.quote import Quote as QuoteModel, QuoteLine as QuoteLineModel
from kolayteklif.models.quote_template import QuoteTemplate as QuoteTemplateModel
from kolayteklif.models.quote_version import QuoteVersion as QuoteVersionModel
from kolayteklif.schemas.quote import CustomerRef, Quote, QuoteLine, QuoteState, QuoteSubState
from kolayteklif.schemas.template import QuoteTemplate, TemplateData
from kolayteklif.schemas.version import QuoteVersion, VersionQuoteSnapshot

logger = logging.getLogger(__name__)


def _to_quote(row: QuoteModel) -> Quote:
    customer = None
    if row.customer_kind and row.customer_id:
        customer = CustomerRef(kind=row.customer_kind, id=row.customer_id)
    return Quote(
        quote_id=row.id,
        quote_number=row.quote_number,
        name=row.name,
        description=row.description,
        customer=customer,
        opportunity_id=row.opportunity_id,
        state=QuoteState(row.state),
        sub_state=QuoteSubState(row.sub_state),
        total_base_amount=row.total_base_amount,
        total_line_amount=row.total_line_amount,
        total_discount=row.total_discount,
        total_tax=row.total_tax,
        total_amount=row.total_amount,
        effective_from=row.effective_from,
        effective_to=row.effective_to,
        closing_notes=row.closing_notes,
        closed_on=row.closed_on,
        created_by=row.created_by,
        created_on=row.created_on,
        modified_on=row.modified_on,
    )


def _to_line(row: QuoteLineModel) -> QuoteLine:
    return QuoteLine(
        line_id=row.id,
        quote_id=row.quote_id,
        product_id=row.product_id,
        description=row.description,
        quantity=row.quantity,
        unit_price=row.unit_price,
        manual_discount=row.manual_discount,
        tax=row.tax,
        position=row.position,
    )


def _to_version(row: QuoteVersionModel) -> QuoteVersion:
    # JSON'dan gelen veri yeniden validate edilir: sayilar Decimal/int olarak doner
    return QuoteVersion(
        version_id=row.id,
        quote_id=row.quote_id,
        version_number=row.version_number,
        version_data=VersionQuoteSnapshot.model_validate(row.version_data),
        change_type=row.change_type,
        change_description=row.change_description,
        changed_fields=tuple(row.changed_fields) if row.changed_fields is not None else None,
        change_reason=row.change_reason,
        created_by=row.created_by,
        created_on=row.created_on,
    )


def _to_template(row: QuoteTemplateModel) -> QuoteTemplate:
    return QuoteTemplate(
        template_id=row.id,
        name=row.name,
        description=row.description,
        category=row.category,
        template_data=TemplateData.model_validate(row.template_data),
        owner=row.owner,
        is_shared=row.is_shared,
        usage_count=row.usage_count,
        created_on=row.created_on,
        modified_on=row.modified_on,
    )


class SqlQuoteRepository:
    """
    SQLAlchemy oturumu uzerinden calisan depo.
    Metotlar sadece flush yapar; commit transaction() blogunun sonunda yapilir.
    """

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def transaction(self):
        try:
            yield
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    # --- Teklif ---

    def load_quote(self, quote_id: uuid.UUID) -> Quote | None:
        row = self.db.get(QuoteModel, quote_id)
        return _to_quote(row) if row else None

    def save_quote(self, quote: Quote) -> None:
        row = self.db.get(QuoteModel, quote.quote_id)
        if row is None:
            row = QuoteModel(id=quote.quote_id, created_on=quote.created_on)
            self.db.add(row)

        row.quote_number = quote.quote_number
        row.name = quote.name
        row.description = quote.description
        row.customer_kind = quote.customer.kind if quote.customer else None
        row.customer_id = quote.customer.id if quote.customer else None
        row.opportunity_id = quote.opportunity_id
        row.state = quote.state.value
        row.sub_state = quote.sub_state.value
        row.total_base_amount = quote.total_base_amount
        row.total_line_amount = quote.total_line_amount
        row.total_discount = quote.total_discount
        row.total_tax = quote.total_tax
        row.total_amount = quote.total_amount
        row.effective_from = quote.effective_from
        row.effective_to = quote.effective_to
        row.closing_notes = quote.closing_notes
        row.closed_on = quote.closed_on
        row.created_by = quote.created_by
        row.modified_on = quote.modified_on
        self.db.flush()

    def list_quotes(
        self,
        search: str | None = None,
        state: QuoteState | None = None,
        sort: str | None = None,
        skip: int = 0,
        limit: int | None = None,
        customer_id: uuid.UUID | None = None,
        opportunity_id: uuid.UUID | None = None,
    ) -> tuple[list[Quote], int]:
        """
        Teklif listesini sayfalama ile dondur.
        Arama: teklif numarasi veya adinda arar.
        Musteri (firma veya kisi) ve firsat ID ile filtrelenebilir.
        Dondurur: (teklif_listesi, toplam_sayi)
        """
        query = self.db.query(QuoteModel)

        if search:
            search_term = f"%{search}%"
            query = query.filter(or_(
                QuoteModel.quote_number.ilike(search_term),
                QuoteModel.name.ilike(search_term),
            ))
        if state:
            query = query.filter(QuoteModel.state == state.value)
        if customer_id:
            query = query.filter(QuoteModel.customer_id == customer_id)
        if opportunity_id:
            query = query.filter(QuoteModel.opportunity_id == opportunity_id)

        total = query.count()

        if sort == "total_asc":
            query = query.order_by(QuoteModel.total_amount.asc())
        elif sort == "total_desc":
            query = query.order_by(QuoteModel.total_amount.desc())
        elif sort == "number_asc":
            query = query.order_by(QuoteModel.quote_number.asc())
        else:
            query = query.order_by(QuoteModel.created_on.desc(), QuoteModel.quote_number.desc())

        query = query.offset(skip)
        if limit is not None:
            query = query.limit(limit)
        return [_to_quote(row) for row in query.all()], total

    def max_quote_sequence(self, prefix: str) -> int:
        """Bu on ekle baslayan numaralardaki en buyuk sira numarasi (yoksa 0)."""
        sequence = cast(func.substr(QuoteModel.quote_number, len(prefix) + 1), Integer)
        highest = self.db.query(func.max(sequence)).filter(
            QuoteModel.quote_number.like(f"{prefix}%")
        ).scalar()
        return highest or 0

    def delete_quote_cascade(self, quote_id: uuid.UUID) -> bool:
        row = self.db.get(QuoteModel, quote_id)
        if row is None:
            return False
        # Iliskilerdeki cascade ile kalemler ve versiyonlar da silinir
        self.db.delete(row)
        self.db.flush()
        return True

    # --- Kalemler ---

    def load_lines(self, quote_id: uuid.UUID) -> list[QuoteLine]:
        rows = (
            self.db.query(QuoteLineModel)
            .filter(QuoteLineModel.quote_id == quote_id)
            .order_by(QuoteLineModel.position, QuoteLineModel.id)
            .all()
        )
        return [_to_line(row) for row in rows]

    def save_lines(self, quote_id: uuid.UUID, lines: list[QuoteLine]) -> None:
        existing = {
            row.id: row
            for row in self.db.query(QuoteLineModel).filter(QuoteLineModel.quote_id == quote_id)
        }
        keep = set()
        for line in lines:
            if line.quote_id != quote_id:
                raise InvariantViolationError(
                    f"Kalem {line.line_id} baska bir teklife ait ({line.quote_id})"
                )
            row = existing.get(line.line_id)
            if row is None:
                row = QuoteLineModel(id=line.line_id, quote_id=quote_id)
                self.db.add(row)
            row.product_id = line.product_id
            row.description = line.description
            row.quantity = line.quantity
            row.unit_price = line.unit_price
            row.manual_discount = line.manual_discount
            row.tax = line.tax
            row.position = line.position
            keep.add(line.line_id)

        for line_id, row in existing.items():
            if line_id not in keep:
                self.db.delete(row)
        self.db.flush()

    # --- Versiyonlar ---

    def append_version(self, version: QuoteVersion) -> None:
        if self.db.get(QuoteVersionModel, version.version_id) is not None:
            raise InvariantViolationError(
                f"Versiyon zaten kayitli, uzerine yazilamaz (ID: {version.version_id})"
            )
        row = QuoteVersionModel(
            id=version.version_id,
            quote_id=version.quote_id,
            version_number=version.version_number,
            change_type=version.change_type.value,
            change_description=version.change_description,
            changed_fields=list(version.changed_fields) if version.changed_fields is not None else None,
            change_reason=version.change_reason,
            created_by=version.created_by,
            created_on=version.created_on,
            version_data=version.version_data.model_dump(mode="json"),
        )
        self.db.add(row)
        self.db.flush()

    def load_versions(self, quote_id: uuid.UUID) -> list[QuoteVersion]:
        rows = (
            self.db.query(QuoteVersionModel)
            .filter(QuoteVersionModel.quote_id == quote_id)
            .order_by(QuoteVersionModel.version_number.asc())
            .all()
        )
        return [_to_version(row) for row in rows]

    def load_version(self, version_id: uuid.UUID) -> QuoteVersion | None:
        row = self.db.get(QuoteVersionModel, version_id)
        return _to_version(row) if row else None

    # --- Sablonlar ---

    def save_template(self, template: QuoteTemplate) -> None:
        row = self.db.get(QuoteTemplateModel, template.template_id)
        if row is None:
            row = QuoteTemplateModel(id=template.template_id, created_on=template.created_on)
            self.db.add(row)

        row.name = template.name
        row.description = template.description
        row.category = template.category.value
        row.template_data = template.template_data.model_dump(mode="json")
        row.owner = template.owner
        row.is_shared = template.is_shared
        row.usage_count = template.usage_count
        row.modified_on = template.modified_on
        self.db.flush()

    def load_template(self, template_id: uuid.UUID) -> QuoteTemplate | None:
        row = self.db.get(QuoteTemplateModel, template_id)
        return _to_template(row) if row else None

    def list_templates(
        self, shared: bool | None = None, owner: str | None = None
    ) -> list[QuoteTemplate]:
        query = self.db.query(QuoteTemplateModel)
        if shared is not None:
            query = query.filter(QuoteTemplateModel.is_shared == shared)
        if owner:
            query = query.filter(QuoteTemplateModel.owner == owner)
        query = query.order_by(func.lower(QuoteTemplateModel.name), QuoteTemplateModel.created_on)
        return [_to_template(row) for row in query.all()]

    def delete_template(self, template_id: uuid.UUID) -> bool:
        row = self.db.get(QuoteTemplateModel, template_id)
        if row is None:
            return False
        self.db.delete(row)
        self.db.flush()
        return True
