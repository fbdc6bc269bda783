"""
Toplu kalem islemleri.
Bir teklifin birden fazla kalemini topluca silme ve iskonto uygulama.

Hepsi ya hep ya hic: tum kalemler tek transaction icinde islenir, herhangi
bir hata olursa hicbir kalem degismez ve versiyon yazilmaz. Basarili islem
sonunda toplamlar bir kez hesaplanir ve tek bir versiyon olusur.
"""
import logging
import uuid
from datetime import datetime
from decimal import Decimal

from kolayteklif.exceptions import QuoteNotFoundError, QuoteValidationError
from kolayteklif.repositories.base import QuoteRepository
from kolayteklif.schemas.quote import DiscountMode, Quote, QuoteLine
from kolayteklif.schemas.version import BulkOperationResult, VersionChangeType
from kolayteklif.services import calculator, state_machine, versioning

logger = logging.getLogger(__name__)


def _load_draft(repository: QuoteRepository, quote_id: uuid.UUID) -> Quote:
    quote = repository.load_quote(quote_id)
    if quote is None:
        raise QuoteNotFoundError("Teklif", quote_id)
    state_machine.ensure_editable(quote)
    return quote


def _resolve_lines(
    lines: list[QuoteLine], line_ids: list[uuid.UUID]
) -> list[QuoteLine]:
    """Istenen kalemleri sirasiyla bul. Biri bile yoksa hicbir sey yapmadan hata firlat."""
    if not line_ids:
        raise QuoteValidationError.single("line_ids", "min_length", "En az bir kalem secilmelidir")
    by_id = {line.line_id: line for line in lines}
    selected = []
    for line_id in dict.fromkeys(line_ids):
        line = by_id.get(line_id)
        if line is None:
            raise QuoteNotFoundError("Teklif kalemi", line_id)
        selected.append(line)
    return selected


def _validate_discount(mode: str, value: Decimal) -> DiscountMode:
    try:
        discount_mode = DiscountMode(mode)
    except ValueError:
        raise QuoteValidationError.single(
            "mode", "one_of",
            f"Gecersiz iskonto tipi: '{mode}'. Gecerli: percentage, amount",
        )
    if value <= 0:
        raise QuoteValidationError.single("value", "gt_zero", "Iskonto degeri sifirdan buyuk olmalidir")
    if discount_mode == DiscountMode.PERCENTAGE and value > calculator.HUNDRED:
        raise QuoteValidationError.single("value", "le_100", "Iskonto yuzdesi 100'u gecemez")
    return discount_mode


def _save_with_snapshot(
    repository: QuoteRepository,
    quote: Quote,
    lines: list[QuoteLine],
    change_type: VersionChangeType,
    created_by: str,
    change_description: str,
    now: datetime | None,
):
    quote = calculator.apply_totals(quote, lines)
    if now is not None:
        quote = quote.model_copy(update={"modified_on": now})
    repository.save_quote(quote)
    repository.save_lines(quote.quote_id, lines)
    version = versioning.create_snapshot(
        repository, quote, lines, change_type,
        created_by=created_by,
        change_description=change_description,
        now=now,
    )
    return quote, version


def bulk_delete(
    repository: QuoteRepository,
    quote_id: uuid.UUID,
    line_ids: list[uuid.UUID],
    created_by: str = "anonymous",
    now: datetime | None = None,
) -> BulkOperationResult:
    """
    Tekliften birden fazla kalemi toplu olarak sil.

    Dondurur:
        BulkOperationResult(total, success, success_items, quote, version)
    """
    with repository.transaction():
        quote = _load_draft(repository, quote_id)
        lines = repository.load_lines(quote_id)
        selected = _resolve_lines(lines, line_ids)

        removed_ids = {line.line_id for line in selected}
        remaining = [line for line in lines if line.line_id not in removed_ids]
        success_items = [f"'{line.description}' silindi" for line in selected]

        quote, version = _save_with_snapshot(
            repository, quote, remaining, VersionChangeType.PRODUCT_REMOVED, created_by,
            f"{len(selected)} kalem toplu silme ile silindi", now,
        )

    logger.info("Teklif '%s' toplu silme: %d kalem", quote.quote_number, len(selected))
    return BulkOperationResult(
        total=len(line_ids),
        success=len(success_items),
        success_items=success_items,
        quote=quote,
        version=version,
    )


def bulk_apply_discount(
    repository: QuoteRepository,
    quote_id: uuid.UUID,
    line_ids: list[uuid.UUID],
    mode: str,
    value: Decimal,
    created_by: str = "anonymous",
    now: datetime | None = None,
) -> BulkOperationResult:
    """
    Secilen kalemlere toplu iskonto uygula.

    percentage: iskonto = min(tutar, tutar x deger / 100)
    amount:     iskonto = min(tutar, deger)
    Iskonto hicbir zaman kalem tutarini (birim fiyat x miktar) asamaz.
    """
    with repository.transaction():
        quote = _load_draft(repository, quote_id)
        discount_mode = _validate_discount(mode, value)
        lines = repository.load_lines(quote_id)
        selected = {line.line_id for line in _resolve_lines(lines, line_ids)}

        updated_lines = []
        success_items = []
        for line in lines:
            if line.line_id not in selected:
                updated_lines.append(line)
                continue

            base = line.base_amount
            if discount_mode == DiscountMode.PERCENTAGE:
                discount = calculator.discount_amount_from_percentage(base, value)
            else:
                discount = value
            discount = calculator.round_money(min(base, discount))

            updated_lines.append(line.model_copy(update={"manual_discount": discount}))
            success_items.append(f"'{line.description}' iskonto: {discount}")

        quote, version = _save_with_snapshot(
            repository, quote, updated_lines, VersionChangeType.DISCOUNT_APPLIED, created_by,
            f"{len(success_items)} kaleme toplu iskonto uygulandi ({discount_mode.value}: {value})",
            now,
        )

    logger.info(
        "Teklif '%s' toplu iskonto: %d kalem (%s %s)",
        quote.quote_number, len(success_items), discount_mode.value, value,
    )
    return BulkOperationResult(
        total=len(line_ids),
        success=len(success_items),
        success_items=success_items,
        quote=quote,
        version=version,
    )
