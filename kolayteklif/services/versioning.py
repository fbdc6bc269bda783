"""
Teklif versiyon servisi.
Her degisiklikte teklifin degismez bir kopyasini (snapshot) olusturur ve
iki versiyon arasindaki farklari (diff) hesaplar.

Versiyon numaralari her teklif icin 1'den baslar ve bosluksuz artar.
Versiyonlar sadece eklenir; teklif silinince birlikte silinir.
"""
import logging
import uuid
from collections import Counter
from datetime import datetime, timezone

from kolayteklif.exceptions import InvariantViolationError
from kolayteklif.repositories.base import QuoteRepository
from kolayteklif.schemas.quote import Quote, QuoteLine
from kolayteklif.schemas.version import (
    FieldChange,
    LineChange,
    QuoteFieldChange,
    QuoteVersion,
    QuoteVersionComparison,
    VersionChanges,
    VersionChangeType,
    VersionComparisonSummary,
    VersionLineSnapshot,
    VersionQuoteSnapshot,
)
from kolayteklif.services import calculator

logger = logging.getLogger(__name__)

# Karsilastirmada takip edilen teklif alanlari
TRACKED_QUOTE_FIELDS = (
    "name",
    "description",
    "customer",
    "effective_from",
    "effective_to",
    "total_amount",
    "state",
    "sub_state",
)

# Karsilastirmada takip edilen kalem alanlari
TRACKED_LINE_FIELDS = (
    "quantity",
    "unit_price",
    "discount",
    "tax",
    "extended_amount",
)


def build_snapshot_data(quote: Quote, lines: list[QuoteLine]) -> VersionQuoteSnapshot:
    """Teklif ve kalemlerinden bagimsiz bir kopya olustur. Girdiler degistirilmez."""
    return VersionQuoteSnapshot(
        quote_number=quote.quote_number,
        name=quote.name,
        description=quote.description,
        customer=quote.customer,
        opportunity_id=quote.opportunity_id,
        effective_from=quote.effective_from,
        effective_to=quote.effective_to,
        total_amount=quote.total_amount,
        total_discount=quote.total_discount,
        total_tax=quote.total_tax,
        state=quote.state,
        sub_state=quote.sub_state,
        lines=tuple(
            VersionLineSnapshot(
                line_id=line.line_id,
                product_id=line.product_id,
                description=line.description,
                quantity=line.quantity,
                unit_price=line.unit_price,
                discount=line.manual_discount,
                tax=line.tax,
                base_amount=line.base_amount,
                extended_amount=line.extended_amount,
            )
            for line in lines
        ),
    )


def create_snapshot(
    repository: QuoteRepository,
    quote: Quote,
    lines: list[QuoteLine],
    change_type: VersionChangeType,
    *,
    created_by: str = "anonymous",
    change_description: str | None = None,
    changed_fields: list[str] | None = None,
    change_reason: str | None = None,
    now: datetime | None = None,
) -> QuoteVersion:
    """
    Teklifin mevcut halinden yeni versiyon olustur ve depoya ekle.
    version_number = mevcut versiyon sayisi + 1
    """
    calculator.verify_totals(quote, lines)

    existing = repository.load_versions(quote.quote_id)
    if existing and existing[-1].version_number != len(existing):
        raise InvariantViolationError(
            f"Teklif {quote.quote_number} versiyon numaralarinda bosluk var "
            f"(son={existing[-1].version_number}, adet={len(existing)})"
        )

    version = QuoteVersion(
        quote_id=quote.quote_id,
        version_number=len(existing) + 1,
        version_data=build_snapshot_data(quote, lines),
        change_type=change_type,
        change_description=change_description,
        changed_fields=tuple(changed_fields) if changed_fields is not None else None,
        change_reason=change_reason,
        created_by=created_by or "anonymous",
        created_on=now or datetime.now(timezone.utc),
    )
    repository.append_version(version)
    logger.info(
        "Teklif %s icin versiyon %d olusturuldu (%s)",
        quote.quote_number, version.version_number, change_type.value,
    )
    return version


def diff_versions(from_version: QuoteVersion, to_version: QuoteVersion) -> QuoteVersionComparison:
    """
    Iki versiyon arasindaki farklari hesapla.

    Siralama sabittir:
        1. eklenen kalemler ('to' versiyonundaki sirayla)
        2. silinen kalemler ('from' versiyonundaki sirayla)
        3. degisen kalemler ('to' versiyonundaki sirayla)
    """
    old_data = from_version.version_data
    new_data = to_version.version_data

    quote_changes = []
    for field in TRACKED_QUOTE_FIELDS:
        old_value = getattr(old_data, field)
        new_value = getattr(new_data, field)
        if old_value != new_value:
            quote_changes.append(QuoteFieldChange(field=field, old_value=old_value, new_value=new_value))

    old_lines = {line.line_id: line for line in old_data.lines}
    new_lines = {line.line_id: line for line in new_data.lines}

    added = [
        LineChange(action="added", line_id=line.line_id, description=line.description)
        for line in new_data.lines
        if line.line_id not in old_lines
    ]
    removed = [
        LineChange(action="removed", line_id=line.line_id, description=line.description)
        for line in old_data.lines
        if line.line_id not in new_lines
    ]

    modified = []
    for new_line in new_data.lines:
        old_line = old_lines.get(new_line.line_id)
        if old_line is None:
            continue
        field_changes = [
            FieldChange(
                field=field,
                old_value=getattr(old_line, field),
                new_value=getattr(new_line, field),
            )
            for field in TRACKED_LINE_FIELDS
            if getattr(old_line, field) != getattr(new_line, field)
        ]
        if field_changes:
            modified.append(LineChange(
                action="modified",
                line_id=new_line.line_id,
                description=new_line.description,
                changes=field_changes,
            ))

    summary = VersionComparisonSummary(
        quote_fields_changed=len(quote_changes),
        lines_added=len(added),
        lines_removed=len(removed),
        lines_modified=len(modified),
        total_changes=len(quote_changes) + len(added) + len(removed) + len(modified),
    )
    return QuoteVersionComparison(
        from_version=from_version,
        to_version=to_version,
        changes=VersionChanges(quote=quote_changes, lines=added + removed + modified),
        summary=summary,
    )


def compare_versions(
    repository: QuoteRepository, from_version_id: uuid.UUID, to_version_id: uuid.UUID
) -> QuoteVersionComparison | None:
    """Iki versiyonu karsilastir. Versiyonlardan biri bulunamazsa None."""
    from_version = repository.load_version(from_version_id)
    to_version = repository.load_version(to_version_id)
    if from_version is None or to_version is None:
        return None
    return diff_versions(from_version, to_version)


# --- Versiyon gecmisi sorgulari ---

def list_versions(
    repository: QuoteRepository,
    quote_id: uuid.UUID,
    change_type: VersionChangeType | None = None,
    from_date: datetime | None = None,
    to_date: datetime | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[QuoteVersion]:
    """
    Teklifin versiyon gecmisi, en yeniden en eskiye.
    Filtreleme: degisiklik turu ve tarih araligi.
    """
    versions = [
        v for v in repository.load_versions(quote_id)
        if (change_type is None or v.change_type == change_type)
        and (from_date is None or _naive(v.created_on) >= _naive(from_date))
        and (to_date is None or _naive(v.created_on) <= _naive(to_date))
    ]
    versions.sort(key=lambda v: v.version_number, reverse=True)
    return versions[offset:offset + limit]


def get_latest_version(repository: QuoteRepository, quote_id: uuid.UUID) -> QuoteVersion | None:
    versions = repository.load_versions(quote_id)
    return versions[-1] if versions else None


def get_version_count(repository: QuoteRepository, quote_id: uuid.UUID) -> int:
    return len(repository.load_versions(quote_id))


def get_change_summary(repository: QuoteRepository, quote_id: uuid.UUID) -> dict[str, int]:
    """Degisiklik turune gore versiyon sayilari. Ornek: {"created": 1, "product_added": 3}"""
    counts = Counter(v.change_type.value for v in repository.load_versions(quote_id))
    return dict(counts)


def _naive(value: datetime) -> datetime:
    # SQLite saat dilimi bilgisini saklamaz; karsilastirmayi UTC naive yap
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
