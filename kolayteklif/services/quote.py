"""
Teklif (Quote) servis katmani.
Teklif CRUD islemleri, kalem islemleri, durum gecisleri ve versiyon gecmisi.

Hesaplama (calculator), durum kurallari (state_machine) ve versiyonlama
(versioning) modullerini bir araya getirir. Veriye sadece QuoteRepository
uzerinden erisir; hangi deponun kullanilacagi disaridan verilir.

Her basarili degisiklik tek bir repository.transaction() icinde yapilir ve
tam olarak bir yeni versiyon olusturur.
"""
import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable

from pydantic import ValidationError

from kolayteklif.config import settings
from kolayteklif.exceptions import QuoteNotFoundError, QuoteValidationError, ValidationIssue
from kolayteklif.repositories.base import QuoteRepository
from kolayteklif.schemas.quote import (
    ActivateRequest,
    Quote,
    QuoteCreate,
    QuoteDetail,
    QuoteLine,
    QuoteLineCreate,
    QuoteLineUpdate,
    QuoteListResponse,
    QuoteState,
    QuoteStatistics,
    QuoteSubState,
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
from kolayteklif.services import bulk, calculator, state_machine, versioning
from kolayteklif.services.opportunity import (
    NullOpportunityClient,
    OpportunityGateway,
    close_linked_opportunity,
)
from kolayteklif.services.state_machine import QuoteAction

logger = logging.getLogger(__name__)

# Sadece birim fiyat veya sadece iskonto degistiyse daha ozel bir etiket kullan
_LINE_CHANGE_TYPES = {
    frozenset({"unit_price"}): VersionChangeType.PRICE_CHANGED,
    frozenset({"manual_discount"}): VersionChangeType.DISCOUNT_APPLIED,
}


def parse_input(schema, raw):
    """
    Disaridan gelen ham veriyi (dict) semaya cevir.
    Sayi alanlari burada parse edilir; "5" + "3" gibi string birlesmeleri
    hesaplamaya asla ulasamaz. Hatalar QuoteValidationError'a donusturulur.
    """
    if isinstance(raw, schema):
        return raw
    try:
        return schema.model_validate(raw)
    except ValidationError as e:
        issues = [
            ValidationIssue(
                field=".".join(str(part) for part in error["loc"]) or "body",
                constraint=error["type"],
                message=error["msg"],
            )
            for error in e.errors()
        ]
        raise QuoteValidationError(issues) from e


def parse_line_input(raw) -> QuoteLineCreate:
    return parse_input(QuoteLineCreate, raw)


class QuoteService:
    """
    Teklif motoru.

    Kullanim:
        service = QuoteService(SqlQuoteRepository(db), build_opportunity_client())
        result = service.create_quote(QuoteCreate(name="Yillik bakim"), created_by="ayse")
    """

    def __init__(
        self,
        repository: QuoteRepository,
        opportunity_gateway: OpportunityGateway | None = None,
        number_prefix: str | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.repository = repository
        self.opportunity_gateway = opportunity_gateway or NullOpportunityClient()
        self.number_prefix = number_prefix or settings.QUOTE_NUMBER_PREFIX
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _now(self) -> datetime:
        return self._clock()

    def _generate_quote_number(self) -> str:
        """
        Otomatik teklif numarasi olustur.
        Format: TEK-2026-0001, TEK-2026-0002, ...
        Yil bazli numaralama yapar; en buyuk mevcut sira numarasindan devam eder,
        araya silinen teklif girse de numara cakismaz.
        """
        year_prefix = f"{self.number_prefix}-{self._now().year}-"
        highest = self.repository.max_quote_sequence(year_prefix)
        return f"{year_prefix}{highest + 1:04d}"

    # ============================================================
    # Okuma
    # ============================================================

    def get_quote(self, quote_id: uuid.UUID) -> Quote:
        """Tek bir teklifi getir. Bulunamazsa QuoteNotFoundError."""
        quote = self.repository.load_quote(quote_id)
        if quote is None:
            raise QuoteNotFoundError("Teklif", quote_id)
        return quote

    def get_quote_detail(self, quote_id: uuid.UUID) -> QuoteDetail:
        quote = self.get_quote(quote_id)
        return QuoteDetail(quote=quote, lines=self.repository.load_lines(quote_id))

    def list_quotes(
        self,
        search: str | None = None,
        state: QuoteState | None = None,
        sort: str | None = None,
        page: int = 1,
        size: int = 20,
        customer_id: uuid.UUID | None = None,
        opportunity_id: uuid.UUID | None = None,
    ) -> QuoteListResponse:
        """
        Teklif listesini sayfalama ile dondur.
        Arama: teklif numarasi veya adinda arar.
        Filtre: durum, musteri (firma / kisi ID) ve firsat.
        Siralama: total_asc, total_desc, number_asc veya varsayilan (en yeni).
        """
        skip = (page - 1) * size
        quotes, total = self.repository.list_quotes(
            search=search, state=state, sort=sort, skip=skip, limit=size,
            customer_id=customer_id, opportunity_id=opportunity_id,
        )
        return QuoteListResponse(items=quotes, total=total, page=page, size=size)

    def statistics(self) -> QuoteStatistics:
        """Teklif istatistikleri (adetler, tutarlar, kazanma orani)."""
        quotes, total = self.repository.list_quotes()

        won = [q for q in quotes if q.state == QuoteState.WON]
        lost = [q for q in quotes if q.state == QuoteState.CLOSED and q.sub_state == QuoteSubState.LOST]
        total_value = sum((q.total_amount for q in quotes), Decimal("0.00"))
        won_value = sum((q.total_amount for q in won), Decimal("0.00"))

        win_rate = 0
        if won or lost:
            win_rate = round(len(won) / (len(won) + len(lost)) * 100)

        return QuoteStatistics(
            total=total,
            draft=sum(1 for q in quotes if q.state == QuoteState.DRAFT),
            active=sum(1 for q in quotes if q.state == QuoteState.ACTIVE),
            won=len(won),
            lost=len(lost),
            total_value=total_value,
            won_value=won_value,
            average_value=calculator.round_money(total_value / total) if total else Decimal("0.00"),
            win_rate=win_rate,
        )

    def validation_status(self, quote_id: uuid.UUID) -> ValidationStatus:
        quote = self.get_quote(quote_id)
        lines = self.repository.load_lines(quote_id)
        return state_machine.validation_status(quote, lines, today=self._now().date())

    # ============================================================
    # Teklif CRUD
    # ============================================================

    def create_quote(
        self,
        data: QuoteCreate | dict,
        created_by: str = "anonymous",
        change_description: str | None = None,
    ) -> TransitionResult:
        """
        Yeni teklif olustur.
        Taslak durumda, sifir toplamlarla baslar; kalem verildiyse eklenir.
        Otomatik teklif numarasi atar ve 1 numarali versiyonu olusturur.
        change_description: ilk versiyonun aciklamasi (sablondan, firsattan ...)
        """
        data = parse_input(QuoteCreate, data)
        state_machine.validate_date_range(data.effective_from, data.effective_to)

        now = self._now()
        with self.repository.transaction():
            quote = Quote(
                quote_number=self._generate_quote_number(),
                name=data.name,
                description=data.description,
                customer=data.customer,
                opportunity_id=data.opportunity_id,
                effective_from=data.effective_from,
                effective_to=data.effective_to,
                created_by=created_by,
                created_on=now,
                modified_on=now,
            )
            lines = [
                self._build_line(quote.quote_id, line_data, position)
                for position, line_data in enumerate(data.lines)
            ]
            quote, version = self._persist(
                quote, lines, VersionChangeType.CREATED, created_by,
                change_description=change_description or f"Teklif '{quote.quote_number}' olusturuldu",
            )

        logger.info("Teklif '%s' olusturuldu (%d kalem)", quote.quote_number, len(lines))
        return TransitionResult(quote=quote, version=version)

    def update_quote(
        self, quote_id: uuid.UUID, data: QuoteUpdate | dict, created_by: str = "anonymous"
    ) -> TransitionResult:
        """
        Teklif alanlarini guncelle (sadece taslak tekliflerde).
        Sadece gonderilen alanlar degisir. Degisen alan yoksa versiyon olusmaz.
        """
        data = parse_input(QuoteUpdate, data)
        updates = data.model_dump(exclude_unset=True, exclude={"change_reason"})
        # customer alani dict olarak gelir, nesne olarak geri koy
        if "customer" in updates:
            updates["customer"] = data.customer

        with self.repository.transaction():
            quote = self.get_quote(quote_id)
            state_machine.ensure_editable(quote)

            changed = [field for field, value in updates.items() if getattr(quote, field) != value]
            if not changed:
                return TransitionResult(quote=quote)

            candidate = quote.model_copy(update={field: updates[field] for field in changed})
            state_machine.validate_date_range(candidate.effective_from, candidate.effective_to)
            candidate = parse_input(Quote, candidate.model_dump())

            lines = self.repository.load_lines(quote_id)
            quote, version = self._persist(
                candidate, lines, VersionChangeType.UPDATED, created_by,
                change_description=f"Guncellenen alanlar: {', '.join(changed)}",
                changed_fields=changed,
                change_reason=data.change_reason,
            )

        logger.info("Teklif '%s' guncellendi: %s", quote.quote_number, ", ".join(changed))
        return TransitionResult(quote=quote, version=version)

    def delete_quote(self, quote_id: uuid.UUID) -> bool:
        """
        Teklifi kalemleri ve versiyonlariyla birlikte sil.
        Sadece taslak teklifler silinebilir. Teklif yoksa False doner.
        """
        with self.repository.transaction():
            quote = self.repository.load_quote(quote_id)
            if quote is None:
                return False
            state_machine.ensure_deletable(quote)
            self.repository.delete_quote_cascade(quote_id)

        logger.info("Teklif '%s' silindi", quote.quote_number)
        return True

    def clone_quote(self, quote_id: uuid.UUID, created_by: str = "anonymous") -> TransitionResult:
        """
        Teklifin taslak bir kopyasini olustur (kalemler dahil, yeni ID'lerle).
        Kaynak teklifin durumu ne olursa olsun kopya taslak olarak baslar.
        """
        source = self.get_quote(quote_id)
        source_lines = self.repository.load_lines(quote_id)

        now = self._now()
        with self.repository.transaction():
            quote = Quote(
                quote_number=self._generate_quote_number(),
                name=f"{source.name} (Kopya)",
                description=source.description,
                customer=source.customer,
                opportunity_id=source.opportunity_id,
                effective_from=source.effective_from,
                effective_to=source.effective_to,
                created_by=created_by,
                created_on=now,
                modified_on=now,
            )
            lines = [
                line.model_copy(update={"line_id": uuid.uuid4(), "quote_id": quote.quote_id})
                for line in source_lines
            ]
            quote, version = self._persist(
                quote, lines, VersionChangeType.CREATED, created_by,
                change_description=f"Teklif '{source.quote_number}' kopyalanarak olusturuldu",
            )

        logger.info("Teklif '%s' -> '%s' kopyalandi", source.quote_number, quote.quote_number)
        return TransitionResult(quote=quote, version=version)

    def create_from_opportunity(
        self, opportunity_id: uuid.UUID, created_by: str = "anonymous"
    ) -> TransitionResult:
        """
        Satis firsatindan taslak teklif olustur.
        Ad, aciklama ve musteri firsattan kopyalanir; teklif firsata baglanir.
        Tahmini kapanis tarihi varsa teklifin gecerlilik bitisi olur.
        Firsat okunamazsa QuoteNotFoundError.
        """
        opportunity = self.opportunity_gateway.get_opportunity(opportunity_id)
        if opportunity is None:
            raise QuoteNotFoundError("Satis firsati", opportunity_id)

        data = parse_input(QuoteCreate, {
            "name": opportunity.name,
            "description": opportunity.description,
            "customer": opportunity.customer,
            "opportunity_id": opportunity_id,
            "effective_to": opportunity.estimated_close_date,
        })
        return self.create_quote(
            data, created_by=created_by,
            change_description=f"Teklif '{opportunity.name}' firsatindan olusturuldu",
        )

    # ============================================================
    # Kalem islemleri (sadece taslak)
    # ============================================================

    def add_line(
        self, quote_id: uuid.UUID, data: QuoteLineCreate | dict, created_by: str = "anonymous"
    ) -> TransitionResult:
        """Teklife yeni kalem ekle."""
        data = parse_line_input(data)

        with self.repository.transaction():
            quote = self.get_quote(quote_id)
            state_machine.ensure_editable(quote)

            lines = self.repository.load_lines(quote_id)
            position = max((line.position for line in lines), default=-1) + 1
            line = self._build_line(quote_id, data, position)
            lines.append(line)

            quote, version = self._persist(
                quote, lines, VersionChangeType.PRODUCT_ADDED, created_by,
                change_description=f"Kalem '{line.description}' eklendi",
            )

        logger.info("Teklif '%s' kalem eklendi: %s", quote.quote_number, line.description)
        return TransitionResult(quote=quote, version=version)

    def update_line(
        self,
        quote_id: uuid.UUID,
        line_id: uuid.UUID,
        data: QuoteLineUpdate | dict,
        created_by: str = "anonymous",
    ) -> TransitionResult:
        """
        Teklif kalemini guncelle.
        Iskonto kalem tutarini asarsa hata firlatir (kirpilmaz).
        """
        data = parse_input(QuoteLineUpdate, data)
        updates = data.model_dump(exclude_unset=True)

        with self.repository.transaction():
            quote = self.get_quote(quote_id)
            state_machine.ensure_editable(quote)

            lines = self.repository.load_lines(quote_id)
            index = next((i for i, line in enumerate(lines) if line.line_id == line_id), None)
            if index is None:
                raise QuoteNotFoundError("Teklif kalemi", line_id)

            current = lines[index]
            changed = [
                field for field, value in updates.items()
                if value is not None and getattr(current, field) != value
            ]
            if not changed:
                return TransitionResult(quote=quote)

            updated = current.model_copy(update={field: updates[field] for field in changed})
            state_machine.validate_line(updated)
            lines[index] = updated

            change_type = _LINE_CHANGE_TYPES.get(frozenset(changed), VersionChangeType.PRODUCT_UPDATED)
            quote, version = self._persist(
                quote, lines, change_type, created_by,
                change_description=f"Kalem '{updated.description}' guncellendi",
                changed_fields=changed,
            )

        logger.info(
            "Teklif '%s' kalem guncellendi: %s (%s)",
            quote.quote_number, updated.description, ", ".join(changed),
        )
        return TransitionResult(quote=quote, version=version)

    def remove_line(
        self, quote_id: uuid.UUID, line_id: uuid.UUID, created_by: str = "anonymous"
    ) -> TransitionResult | None:
        """
        Tekliften kalem sil.
        Kalem zaten yoksa None doner (hata degil); teklif yoksa QuoteNotFoundError.
        """
        with self.repository.transaction():
            quote = self.get_quote(quote_id)
            state_machine.ensure_editable(quote)

            lines = self.repository.load_lines(quote_id)
            removed = next((line for line in lines if line.line_id == line_id), None)
            if removed is None:
                logger.info("Teklif '%s' kalemi zaten yok: %s", quote.quote_number, line_id)
                return None

            lines = [line for line in lines if line.line_id != line_id]
            quote, version = self._persist(
                quote, lines, VersionChangeType.PRODUCT_REMOVED, created_by,
                change_description=f"Kalem '{removed.description}' silindi",
            )

        logger.info("Teklif '%s' kalem silindi: %s", quote.quote_number, removed.description)
        return TransitionResult(quote=quote, version=version)

    def bulk_delete(
        self, quote_id: uuid.UUID, line_ids: list[uuid.UUID], created_by: str = "anonymous"
    ) -> BulkOperationResult:
        return bulk.bulk_delete(
            self.repository, quote_id, line_ids, created_by=created_by, now=self._now(),
        )

    def bulk_apply_discount(
        self,
        quote_id: uuid.UUID,
        line_ids: list[uuid.UUID],
        mode: str,
        value: Decimal,
        created_by: str = "anonymous",
    ) -> BulkOperationResult:
        return bulk.bulk_apply_discount(
            self.repository, quote_id, line_ids, mode, value,
            created_by=created_by, now=self._now(),
        )

    # ============================================================
    # Durum gecisleri
    # ============================================================

    def activate(
        self,
        quote_id: uuid.UUID,
        created_by: str = "anonymous",
        data: ActivateRequest | dict | None = None,
    ) -> TransitionResult:
        """
        Taslak -> Aktif.
        Gecerlilik tarihleri zorunlu; kalem yoksa veya toplam sifirsa sadece uyari verilir.
        Istekte tarih gelirse aktiflestirmeden once teklife yazilir.
        """
        data = parse_input(ActivateRequest, data or {})

        with self.repository.transaction():
            quote = self.get_quote(quote_id)
            state_machine.check_transition(quote, QuoteAction.ACTIVATE)

            date_updates = data.model_dump(exclude_unset=True, exclude_none=True)
            changed = [field for field, value in date_updates.items() if getattr(quote, field) != value]
            if changed:
                quote = quote.model_copy(update={field: date_updates[field] for field in changed})
            state_machine.check_activation(quote)

            lines = self.repository.load_lines(quote_id)
            warnings = state_machine.activation_warnings(quote, len(lines), today=self._now().date())

            activated = state_machine.apply_transition(quote, QuoteAction.ACTIVATE, self._now())
            self.repository.save_quote(activated)
            version = versioning.create_snapshot(
                self.repository, activated, lines, VersionChangeType.ACTIVATED,
                created_by=created_by,
                change_description=f"Teklif '{activated.quote_number}' aktiflestirildi",
                changed_fields=["state", "sub_state", *changed],
                now=self._now(),
            )

        for warning in warnings:
            logger.warning("Teklif '%s' aktiflestirme uyarisi: %s", activated.quote_number, warning)
        logger.info("Teklif '%s' aktiflestirildi", activated.quote_number)
        return TransitionResult(quote=activated, version=version, warnings=warnings)

    def win(
        self, quote_id: uuid.UUID, created_by: str = "anonymous", closing_notes: str | None = None
    ) -> TransitionResult:
        """
        Aktif -> Kazanildi.
        Teklif bir firsata bagliysa firsat da kazanildi olarak kapatilmaya calisilir.
        Firsat kapatilamazsa teklif yine kazanilmis sayilir, uyari doner.
        """
        result = self._transition(
            quote_id, QuoteAction.WIN, created_by, closing_notes=closing_notes,
        )
        quote = result.quote
        if quote.opportunity_id:
            warning = close_linked_opportunity(
                self.opportunity_gateway,
                quote.opportunity_id,
                actual_revenue=quote.total_amount,
                close_date=self._now().date(),
            )
            if warning:
                result.warnings.append(warning)
        return result

    def lose(
        self, quote_id: uuid.UUID, created_by: str = "anonymous", closing_notes: str | None = None
    ) -> TransitionResult:
        """Taslak / Aktif -> Kapatildi (kaybedildi)."""
        return self._transition(quote_id, QuoteAction.LOSE, created_by, closing_notes=closing_notes)

    def cancel(
        self, quote_id: uuid.UUID, created_by: str = "anonymous", reason: str | None = None
    ) -> TransitionResult:
        """Kazanilmamis her teklif -> Kapatildi (iptal)."""
        return self._transition(
            quote_id, QuoteAction.CANCEL, created_by, closing_notes=reason, change_reason=reason,
        )

    def revise(
        self, quote_id: uuid.UUID, created_by: str = "anonymous", reason: str | None = None
    ) -> TransitionResult:
        """Aktif / Kapatildi -> Taslak. Kazanilmis teklif revize edilemez."""
        return self._transition(quote_id, QuoteAction.REVISE, created_by, change_reason=reason)

    def _transition(
        self,
        quote_id: uuid.UUID,
        action: QuoteAction,
        created_by: str,
        closing_notes: str | None = None,
        change_reason: str | None = None,
    ) -> TransitionResult:
        with self.repository.transaction():
            quote = self.get_quote(quote_id)
            old_state = quote.state
            updated = state_machine.apply_transition(quote, action, self._now(), closing_notes)
            lines = self.repository.load_lines(quote_id)

            self.repository.save_quote(updated)
            version = versioning.create_snapshot(
                self.repository, updated, lines, state_machine.TRANSITIONS[action].change_type,
                created_by=created_by,
                change_description=(
                    f"Teklif '{updated.quote_number}' durumu "
                    f"'{state_machine.STATE_LABELS[old_state]}' -> "
                    f"'{state_machine.STATE_LABELS[updated.state]}' olarak degistirildi"
                ),
                changed_fields=["state", "sub_state"],
                change_reason=change_reason,
                now=self._now(),
            )

        logger.info(
            "Teklif '%s' durumu %s -> %s (%s)",
            updated.quote_number, old_state.value, updated.state.value, updated.sub_state.value,
        )
        return TransitionResult(quote=updated, version=version)

    # ============================================================
    # Versiyon gecmisi
    # ============================================================

    def list_versions(
        self,
        quote_id: uuid.UUID,
        change_type: VersionChangeType | None = None,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[QuoteVersion]:
        self.get_quote(quote_id)
        return versioning.list_versions(
            self.repository, quote_id, change_type=change_type,
            from_date=from_date, to_date=to_date, limit=limit, offset=offset,
        )

    def get_version(self, version_id: uuid.UUID) -> QuoteVersion:
        version = self.repository.load_version(version_id)
        if version is None:
            raise QuoteNotFoundError("Teklif versiyonu", version_id)
        return version

    def get_latest_version(self, quote_id: uuid.UUID) -> QuoteVersion | None:
        self.get_quote(quote_id)
        return versioning.get_latest_version(self.repository, quote_id)

    def get_version_count(self, quote_id: uuid.UUID) -> int:
        self.get_quote(quote_id)
        return versioning.get_version_count(self.repository, quote_id)

    def get_change_summary(self, quote_id: uuid.UUID) -> dict[str, int]:
        self.get_quote(quote_id)
        return versioning.get_change_summary(self.repository, quote_id)

    def compare_versions(
        self, from_version_id: uuid.UUID, to_version_id: uuid.UUID
    ) -> QuoteVersionComparison | None:
        return versioning.compare_versions(self.repository, from_version_id, to_version_id)

    def restore_version(
        self, quote_id: uuid.UUID, version_id: uuid.UUID, created_by: str = "anonymous"
    ) -> TransitionResult:
        """
        Taslak teklifi eski bir versiyondaki haline geri dondur.
        Teklif alanlari ve kalemler kopyalanir, toplamlar yeniden hesaplanir.
        Durum degismez; geri donus yeni bir 'updated' versiyonu olarak kaydedilir.
        """
        version = self.get_version(version_id)
        if version.quote_id != quote_id:
            raise QuoteValidationError.single(
                "version_id", "belongs_to_quote",
                f"Versiyon {version.version_number} bu teklife ait degil",
            )

        snapshot = version.version_data
        with self.repository.transaction():
            quote = self.get_quote(quote_id)
            state_machine.ensure_editable(quote)

            restored = quote.model_copy(update={
                "name": snapshot.name,
                "description": snapshot.description,
                "customer": snapshot.customer,
                "opportunity_id": snapshot.opportunity_id,
                "effective_from": snapshot.effective_from,
                "effective_to": snapshot.effective_to,
            })
            lines = [
                QuoteLine(
                    line_id=line.line_id,
                    quote_id=quote_id,
                    product_id=line.product_id,
                    description=line.description,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    manual_discount=line.discount,
                    tax=line.tax,
                    position=position,
                )
                for position, line in enumerate(snapshot.lines)
            ]
            quote, new_version = self._persist(
                restored, lines, VersionChangeType.UPDATED, created_by,
                change_description=f"Teklif versiyon {version.version_number} haline donduruldu",
                change_reason=f"Versiyon {version.version_number} geri yuklendi",
            )

        logger.info(
            "Teklif '%s' versiyon %d'e geri donduruldu",
            quote.quote_number, version.version_number,
        )
        return TransitionResult(quote=quote, version=new_version)

    # ============================================================
    # Yardimcilar
    # ============================================================

    def _build_line(self, quote_id: uuid.UUID, data: QuoteLineCreate, position: int) -> QuoteLine:
        line = QuoteLine(
            quote_id=quote_id,
            product_id=data.product_id,
            description=data.description,
            quantity=data.quantity,
            unit_price=data.unit_price,
            manual_discount=data.manual_discount,
            tax=data.tax,
            position=position,
        )
        state_machine.validate_line(line)
        return line

    def _persist(
        self,
        quote: Quote,
        lines: list[QuoteLine],
        change_type: VersionChangeType,
        created_by: str,
        **version_options,
    ) -> tuple[Quote, QuoteVersion]:
        """Toplamlari yeniden hesapla, teklif ve kalemleri kaydet, versiyon olustur."""
        now = self._now()
        quote = calculator.apply_totals(quote, lines).model_copy(update={"modified_on": now})
        self.repository.save_quote(quote)
        self.repository.save_lines(quote.quote_id, lines)
        version = versioning.create_snapshot(
            self.repository, quote, lines, change_type,
            created_by=created_by, now=now, **version_options,
        )
        return quote, version
