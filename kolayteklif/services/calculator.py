"""
Teklif tutar hesaplamalari.
Saf fonksiyonlar: yan etki yok, veritabani yok, validasyon yok.
Verilen degerle ne gelirse hesaplar; iskontonun tutari asip asmadigina
durum makinesi (state_machine) karar verir.

Tum hesaplar Decimal ile yapilir. Toplamlar 2 haneye yuvarlanir
(ROUND_HALF_UP), boylece yuzlerce kalemde kayan nokta hatasi birikmez.
"""
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from kolayteklif.exceptions import InvariantViolationError
from kolayteklif.schemas.quote import Quote, QuoteLine, QuoteTotals

ZERO = Decimal("0.00")
CENT = Decimal("0.01")
HUNDRED = Decimal(100)


def round_money(value: Decimal | int) -> Decimal:
    """Para degerini 2 haneye yuvarla. 17.9982 -> 18.00"""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def line_base_amount(unit_price: Decimal, quantity: int) -> Decimal:
    """BaseAmount = birim fiyat x miktar"""
    return unit_price * quantity


def line_extended_amount(
    unit_price: Decimal, quantity: int,
    discount: Decimal = ZERO, tax: Decimal = ZERO,
) -> Decimal:
    """ExtendedAmount = (birim fiyat x miktar) - iskonto + vergi"""
    return line_base_amount(unit_price, quantity) - discount + tax


def discount_percentage(base: Decimal, discount_amount: Decimal) -> Decimal:
    """Iskonto tutarindan yuzde hesapla. Tutar 0 ise 0 doner."""
    if base == 0:
        return ZERO
    return discount_amount / base * HUNDRED


def discount_amount_from_percentage(base: Decimal, pct: Decimal) -> Decimal:
    return base * pct / HUNDRED


def tax_amount_from_percentage(base: Decimal, pct: Decimal) -> Decimal:
    return base * pct / HUNDRED


def aggregate_totals(lines: Iterable[QuoteLine]) -> QuoteTotals:
    """
    Kalemlerden teklif toplamlarini hesapla.

    total_line_amount = kalemlerin extended_amount toplami
    total_amount      = total_line_amount (navlun bu motorun konusu degil)
    Bos liste -> tum degerler sifir, line_count=0.
    """
    total_base = ZERO
    total_line = ZERO
    total_discount = ZERO
    total_tax = ZERO
    line_count = 0
    total_quantity = 0

    for line in lines:
        total_base += line.base_amount
        total_line += line.extended_amount
        total_discount += line.manual_discount
        total_tax += line.tax
        line_count += 1
        total_quantity += line.quantity

    total_line = round_money(total_line)
    return QuoteTotals(
        total_base_amount=round_money(total_base),
        total_line_amount=total_line,
        total_discount=round_money(total_discount),
        total_tax=round_money(total_tax),
        total_amount=total_line,
        line_count=line_count,
        total_quantity=total_quantity,
    )


def weighted_average_price(lines: Iterable[QuoteLine]) -> Decimal:
    """Miktar agirlikli ortalama birim fiyat. Toplam miktar 0 ise 0."""
    weighted_sum = ZERO
    total_quantity = 0
    for line in lines:
        weighted_sum += line.unit_price * line.quantity
        total_quantity += line.quantity
    if total_quantity == 0:
        return ZERO
    return weighted_sum / total_quantity


def average_discount_percentage(lines: Iterable[QuoteLine]) -> Decimal:
    """Teklif genelinde ortalama iskonto yuzdesi (toplam iskonto / toplam tutar)."""
    total_base = ZERO
    total_discount = ZERO
    for line in lines:
        total_base += line.base_amount
        total_discount += line.manual_discount
    return discount_percentage(total_base, total_discount)


def grand_total(
    line_items_total: Decimal,
    freight_amount: Decimal = ZERO,
    additional_charges: Decimal = ZERO,
) -> Decimal:
    """Kalem toplami + navlun + ek masraflar."""
    return round_money(line_items_total + freight_amount + additional_charges)


# --- Gecerlilik tarihi yardimcilari ---

def validity_period_days(effective_from: date | None, effective_to: date | None) -> int | None:
    """Teklifin gecerlilik suresi (gun). Tarihlerden biri yoksa None."""
    if not effective_from or not effective_to:
        return None
    return (effective_to - effective_from).days


def days_until_expiration(effective_to: date | None, today: date | None = None) -> int | None:
    if not effective_to:
        return None
    today = today or date.today()
    return (effective_to - today).days


def is_expired(effective_to: date | None, today: date | None = None) -> bool:
    if not effective_to:
        return False
    return effective_to < (today or date.today())


def is_expiring_soon(
    effective_to: date | None, days_threshold: int = 7, today: date | None = None
) -> bool:
    """Son gecerlilik tarihi bugunden sonra ve esik gun icinde mi?"""
    if not effective_to:
        return False
    today = today or date.today()
    remaining = (effective_to - today).days
    return 0 < remaining <= days_threshold


def verify_totals(quote: Quote, lines: Iterable[QuoteLine]) -> None:
    """
    Teklifte kayitli toplamlar kalemlerden hesaplananla ayni olmali.
    Farkliysa bir yerde toplamlar elle degistirilmis demektir; duzeltmeden hata firlat.
    """
    totals = aggregate_totals(lines)
    stored = (
        quote.total_base_amount, quote.total_line_amount,
        quote.total_discount, quote.total_tax, quote.total_amount,
    )
    expected = (
        totals.total_base_amount, totals.total_line_amount,
        totals.total_discount, totals.total_tax, totals.total_amount,
    )
    if stored != expected:
        raise InvariantViolationError(
            f"Teklif {quote.quote_number} toplamlari kalemlerle uyusmuyor: "
            f"kayitli={stored}, hesaplanan={expected}"
        )


def apply_totals(quote: Quote, lines: Iterable[QuoteLine]) -> Quote:
    """Kalemlerden hesaplanan toplamlari teklifin yeni bir kopyasina yaz."""
    totals = aggregate_totals(lines)
    return quote.model_copy(update=totals.model_dump(exclude={"line_count", "total_quantity"}))
