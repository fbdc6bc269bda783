"""
Teklif versiyon (QuoteVersion) semalari.
Versiyonlar degismez (frozen) nesnelerdir: olusturulduktan sonra
hicbir alanina atama yapilamaz.
"""
import uuid
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, ConfigDict

from kolayteklif.schemas.quote import CustomerRef, Money, Quote, QuoteState, QuoteSubState


class VersionChangeType(str, Enum):
    """Versiyonu olusturan degisikligin turu (sadece etiket, gecis kurali degil)."""
    CREATED = "created"
    UPDATED = "updated"
    ACTIVATED = "activated"
    WON = "won"
    LOST = "lost"
    REVISED = "revised"
    CANCELED = "canceled"
    PRODUCT_ADDED = "product_added"
    PRODUCT_REMOVED = "product_removed"
    PRODUCT_UPDATED = "product_updated"
    DISCOUNT_APPLIED = "discount_applied"
    PRICE_CHANGED = "price_changed"


class VersionLineSnapshot(BaseModel):
    """Versiyon anindaki kalemin normalize edilmis kopyasi."""
    line_id: uuid.UUID
    product_id: uuid.UUID | None = None
    description: str
    quantity: int
    unit_price: Money
    discount: Money = Decimal("0.00")
    tax: Money = Decimal("0.00")
    base_amount: Money
    extended_amount: Money

    model_config = ConfigDict(frozen=True)


class VersionQuoteSnapshot(BaseModel):
    """Versiyon anindaki teklif alanlari ve kalemleri."""
    quote_number: str
    name: str
    description: str | None = None
    customer: CustomerRef | None = None
    opportunity_id: uuid.UUID | None = None
    effective_from: date | None = None
    effective_to: date | None = None
    total_amount: Money = Decimal("0.00")
    total_discount: Money = Decimal("0.00")
    total_tax: Money = Decimal("0.00")
    state: QuoteState
    sub_state: QuoteSubState
    lines: tuple[VersionLineSnapshot, ...] = ()

    model_config = ConfigDict(frozen=True)


class QuoteVersion(BaseModel):
    """
    Teklifin belirli bir andaki degismez kopyasi.
    version_number her teklif icin 1'den baslar ve bosluksuz artar.
    """
    version_id: uuid.UUID = Field(default_factory=uuid.uuid4)
    quote_id: uuid.UUID
    version_number: int = Field(ge=1)
    version_data: VersionQuoteSnapshot
    change_type: VersionChangeType
    change_description: str | None = None
    changed_fields: tuple[str, ...] | None = None
    change_reason: str | None = None
    created_by: str = "anonymous"
    created_on: datetime

    model_config = ConfigDict(frozen=True, from_attributes=True)


# ============================================================
# Karsilastirma (diff) sonuclari
# ============================================================

class FieldChange(BaseModel):
    field: str
    old_value: Any = None
    new_value: Any = None


class QuoteFieldChange(FieldChange):
    type: Literal["modified"] = "modified"


class LineChange(BaseModel):
    action: Literal["added", "removed", "modified"]
    line_id: uuid.UUID
    description: str
    changes: list[FieldChange] = []


class VersionChanges(BaseModel):
    quote: list[QuoteFieldChange] = []
    lines: list[LineChange] = []


class VersionComparisonSummary(BaseModel):
    total_changes: int = 0
    quote_fields_changed: int = 0
    lines_added: int = 0
    lines_removed: int = 0
    lines_modified: int = 0


class QuoteVersionComparison(BaseModel):
    from_version: QuoteVersion
    to_version: QuoteVersion
    changes: VersionChanges
    summary: VersionComparisonSummary


# ============================================================
# Islem sonuclari
# ============================================================

class TransitionResult(BaseModel):
    """
    Durum gecisi veya degisiklik sonucu.
    warnings: islemi engellemeyen uyarilar (ornegin firsat kapatilamadi).
    """
    quote: Quote
    version: QuoteVersion | None = None
    warnings: list[str] = []


class BulkOperationResult(BaseModel):
    """Toplu islem raporu."""
    total: int
    success: int
    success_items: list[str] = []
    quote: Quote
    version: QuoteVersion | None = None
