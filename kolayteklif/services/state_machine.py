"""
Teklif durum makinesi.

Durumlar: draft (baslangic) -> active -> won (son)
                                       -> closed (lost / canceled)
          active / closed -> draft (revize)

Kalem ekleme/guncelleme/silme ve teklif alanlarinin guncellenmesi
sadece draft durumunda yapilabilir. Bu modul sadece karar verir;
kaydetme ve versiyonlama QuoteService'in isidir.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from kolayteklif.exceptions import QuoteValidationError, ValidationIssue
from kolayteklif.schemas.quote import Quote, QuoteLine, QuoteState, QuoteSubState, ValidationStatus
from kolayteklif.schemas.version import VersionChangeType
from kolayteklif.services import calculator

logger = logging.getLogger(__name__)


class QuoteAction(str, Enum):
    ACTIVATE = "activate"
    WIN = "win"
    LOSE = "lose"
    CANCEL = "cancel"
    REVISE = "revise"


@dataclass(frozen=True)
class Transition:
    allowed_from: frozenset[QuoteState]
    target: QuoteState
    sub_state: QuoteSubState
    change_type: VersionChangeType


TRANSITIONS: dict[QuoteAction, Transition] = {
    QuoteAction.ACTIVATE: Transition(
        frozenset({QuoteState.DRAFT}),
        QuoteState.ACTIVE, QuoteSubState.OPEN, VersionChangeType.ACTIVATED,
    ),
    QuoteAction.WIN: Transition(
        frozenset({QuoteState.ACTIVE}),
        QuoteState.WON, QuoteSubState.WON, VersionChangeType.WON,
    ),
    QuoteAction.LOSE: Transition(
        frozenset({QuoteState.DRAFT, QuoteState.ACTIVE}),
        QuoteState.CLOSED, QuoteSubState.LOST, VersionChangeType.LOST,
    ),
    QuoteAction.CANCEL: Transition(
        frozenset({QuoteState.DRAFT, QuoteState.ACTIVE, QuoteState.CLOSED}),
        QuoteState.CLOSED, QuoteSubState.CANCELED, VersionChangeType.CANCELED,
    ),
    QuoteAction.REVISE: Transition(
        frozenset({QuoteState.ACTIVE, QuoteState.CLOSED}),
        QuoteState.DRAFT, QuoteSubState.IN_PROGRESS, VersionChangeType.REVISED,
    ),
}

# Arayuzde gosterilecek Turkce etiketler
STATE_LABELS = {
    QuoteState.DRAFT: "Taslak",
    QuoteState.ACTIVE: "Aktif",
    QuoteState.WON: "Kazanildi",
    QuoteState.CLOSED: "Kapatildi",
}

# Uyari esikleri (gun)
MAX_VALIDITY_DAYS = 365
MIN_VALIDITY_DAYS = 7


def allowed_actions(state: QuoteState) -> set[QuoteAction]:
    """Verilen durumdan yapilabilecek gecisler."""
    return {action for action, t in TRANSITIONS.items() if state in t.allowed_from}


def reachable_states(state: QuoteState) -> set[QuoteState]:
    """Tek gecisle ulasilabilecek durumlar. won icin bos kume."""
    return {TRANSITIONS[action].target for action in allowed_actions(state)}


def check_transition(quote: Quote, action: QuoteAction) -> Transition:
    """Gecis mumkun degilse QuoteValidationError firlatir."""
    transition = TRANSITIONS[action]
    if quote.state not in transition.allowed_from:
        label = STATE_LABELS.get(quote.state, quote.state.value)
        logger.warning(
            "Gecersiz durum gecisi: teklif %s, durum=%s, islem=%s",
            quote.quote_number, quote.state.value, action.value,
        )
        raise QuoteValidationError.single(
            "state", "illegal_transition",
            f"'{label}' durumundaki teklif icin '{action.value}' islemi yapilamaz",
        )
    return transition


def apply_transition(
    quote: Quote, action: QuoteAction, now: datetime, closing_notes: str | None = None
) -> Quote:
    """
    Gecisi uygula ve teklifin YENI bir kopyasini dondur.
    Girdi nesnesi degistirilmez.
    """
    transition = check_transition(quote, action)
    update = {
        "state": transition.target,
        "sub_state": transition.sub_state,
        "modified_on": now,
    }
    if transition.target in (QuoteState.WON, QuoteState.CLOSED):
        update["closed_on"] = now
        if closing_notes is not None:
            update["closing_notes"] = closing_notes
    elif transition.target == QuoteState.DRAFT:
        update["closed_on"] = None
    return quote.model_copy(update=update)


# --- Degisiklik kontrolleri ---

def ensure_editable(quote: Quote) -> None:
    """Teklif taslak degilse degisiklik yapilamaz."""
    if quote.state != QuoteState.DRAFT:
        raise QuoteValidationError.single(
            "state", "draft_required",
            f"Teklif '{quote.quote_number}' taslak durumda degil, degisiklik yapilamaz",
        )


def ensure_deletable(quote: Quote) -> None:
    if quote.state != QuoteState.DRAFT:
        raise QuoteValidationError.single(
            "state", "draft_required",
            f"Sadece taslak teklifler silinebilir ('{quote.quote_number}')",
        )


def date_range_issues(effective_from: date | None, effective_to: date | None) -> list[ValidationIssue]:
    """Iki tarih de doluysa bitis baslangictan sonra olmali."""
    if effective_from and effective_to and effective_to <= effective_from:
        return [ValidationIssue(
            "effective_to", "after_effective_from",
            "Gecerlilik bitis tarihi baslangic tarihinden sonra olmali",
        )]
    return []


def validate_date_range(effective_from: date | None, effective_to: date | None) -> None:
    issues = date_range_issues(effective_from, effective_to)
    if issues:
        raise QuoteValidationError(issues)


def line_issues(line: QuoteLine) -> list[ValidationIssue]:
    """
    Tek kalem kurallari.
    Iskonto tutari kalem tutarini asamaz (tek kalem duzenlemede engelleyici hata,
    toplu iskontoda ise kirpilir).
    """
    issues = []
    if line.quantity <= 0:
        issues.append(ValidationIssue("quantity", "gt_zero", "Miktar sifirdan buyuk olmali"))
    if line.unit_price < 0:
        issues.append(ValidationIssue("unit_price", "ge_zero", "Birim fiyat negatif olamaz"))
    if line.manual_discount < 0:
        issues.append(ValidationIssue("manual_discount", "ge_zero", "Iskonto negatif olamaz"))
    elif line.manual_discount > line.base_amount:
        issues.append(ValidationIssue(
            "manual_discount", "le_base_amount",
            f"Iskonto ({line.manual_discount}) kalem tutarini ({line.base_amount}) asamaz",
        ))
    if line.tax < 0:
        issues.append(ValidationIssue("tax", "ge_zero", "Vergi negatif olamaz"))
    return issues


def validate_line(line: QuoteLine) -> None:
    issues = line_issues(line)
    if issues:
        raise QuoteValidationError(issues)


# --- Aktiflestirme ---

def activation_issues(quote: Quote) -> list[ValidationIssue]:
    """Aktiflestirmeyi engelleyen eksikler."""
    issues = []
    if not quote.effective_from:
        issues.append(ValidationIssue(
            "effective_from", "required", "Gecerlilik baslangic tarihi zorunlu",
        ))
    if not quote.effective_to:
        issues.append(ValidationIssue(
            "effective_to", "required", "Gecerlilik bitis tarihi zorunlu",
        ))
    issues.extend(date_range_issues(quote.effective_from, quote.effective_to))
    return issues


def activation_warnings(quote: Quote, line_count: int, today: date | None = None) -> list[str]:
    """Aktiflestirmeyi engellemeyen uyarilar."""
    today = today or date.today()
    warnings = []
    if line_count == 0:
        warnings.append("Teklifte hic kalem yok")
    if quote.total_amount <= 0:
        warnings.append("Teklif toplam tutari sifir veya negatif")
    if quote.effective_to and quote.effective_to < today:
        warnings.append("Gecerlilik bitis tarihi gecmiste")
    period = calculator.validity_period_days(quote.effective_from, quote.effective_to)
    if period is not None and period > 0:
        if period > MAX_VALIDITY_DAYS:
            warnings.append("Gecerlilik suresi 1 yildan uzun")
        elif period < MIN_VALIDITY_DAYS:
            warnings.append("Gecerlilik suresi cok kisa (7 gunden az)")
    return warnings


def check_activation(quote: Quote) -> None:
    issues = activation_issues(quote)
    if issues:
        logger.warning(
            "Teklif %s aktiflestirilemedi: %s",
            quote.quote_number, ", ".join(issue.field for issue in issues),
        )
        raise QuoteValidationError(issues)


def validation_status(quote: Quote, lines: list[QuoteLine], today: date | None = None) -> ValidationStatus:
    """Arayuz icin tum kontrollerin ozeti."""
    today = today or date.today()
    actions = allowed_actions(quote.state)
    errors: list[str] = []

    can_edit = quote.state == QuoteState.DRAFT
    if not can_edit:
        errors.append("Teklif duzenlemek icin taslak durumda olmali")

    activation = activation_issues(quote) if QuoteAction.ACTIVATE in actions else []
    can_activate = QuoteAction.ACTIVATE in actions and not activation
    errors.extend(issue.message for issue in activation)

    warnings = activation_warnings(quote, len(lines), today) if can_activate else []

    return ValidationStatus(
        can_edit=can_edit,
        can_activate=can_activate,
        can_win=QuoteAction.WIN in actions,
        can_lose=QuoteAction.LOSE in actions,
        can_cancel=QuoteAction.CANCEL in actions,
        can_delete=quote.state == QuoteState.DRAFT,
        can_revise=QuoteAction.REVISE in actions,
        is_expired=calculator.is_expired(quote.effective_to, today),
        is_expiring_soon=calculator.is_expiring_soon(quote.effective_to, today=today),
        errors=list(dict.fromkeys(errors)),
        warnings=list(dict.fromkeys(warnings)),
    )
