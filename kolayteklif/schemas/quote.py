"""
Teklif (Quote) Pydantic semalari.
Hem API giris/cikis validasyonu hem de teklif motorunun calistigi
veri yapilari icin kullanilir.

Para alanlari Decimal tutulur; JSON'a sayi (float) olarak yazilir ki
kaydet/yukle dongusunde string'e donusmesin.
"""
import uuid
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, Field, ConfigDict, PlainSerializer, computed_field


Money = Annotated[
    Decimal,
    PlainSerializer(lambda value: float(value), return_type=float, when_used="json"),
]


class QuoteState(str, Enum):
    """Teklifin yasam dongusu durumu. Gecis kurallari sadece buna bakar."""
    DRAFT = "draft"
    ACTIVE = "active"
    WON = "won"
    CLOSED = "closed"


class QuoteSubState(str, Enum):
    """Bilgi amacli alt durum (gecis kurallarini etkilemez)."""
    IN_PROGRESS = "in_progress"
    IN_REVIEW = "in_review"
    OPEN = "open"
    WON = "won"
    LOST = "lost"
    CANCELED = "canceled"
    REVISED = "revised"


class DiscountMode(str, Enum):
    PERCENTAGE = "percentage"
    AMOUNT = "amount"


class CustomerRef(BaseModel):
    """
    Musteri referansi: bir firma (account) veya kisi (contact).
    Tip ve ID birlikte tasinir, birbirinden kopamaz.
    """
    kind: Literal["account", "contact"]
    id: uuid.UUID

    model_config = ConfigDict(frozen=True)


# ============================================================
# Motorun calistigi veri yapilari
# ============================================================

class QuoteLine(BaseModel):
    """
    Teklif kalemi.
    base_amount ve extended_amount saklanmaz, her okumada girdilerden hesaplanir.
    Ornek: 5 adet x 100.00 = 500.00, iskonto 50.00, vergi 21.00 -> 471.00
    """
    line_id: uuid.UUID = Field(default_factory=uuid.uuid4)
    quote_id: uuid.UUID
    product_id: uuid.UUID | None = None
    description: str = Field(min_length=1, max_length=255)
    quantity: int = Field(gt=0)
    unit_price: Money = Field(ge=0)
    manual_discount: Money = Field(default=Decimal("0.00"), ge=0)
    tax: Money = Field(default=Decimal("0.00"), ge=0)
    # Teklif icindeki sira (diff sirasi buna gore belirlenir)
    position: int = 0

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def base_amount(self) -> Money:
        return self.unit_price * self.quantity

    @computed_field
    @property
    def extended_amount(self) -> Money:
        return self.base_amount - self.manual_discount + self.tax


class Quote(BaseModel):
    """
    Teklif belgesi.
    Toplam alanlari sadece kalem degisikliginden sonra yeniden hesaplanir,
    elle duzenlenmez.
    """
    quote_id: uuid.UUID = Field(default_factory=uuid.uuid4)
    quote_number: str
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    customer: CustomerRef | None = None
    opportunity_id: uuid.UUID | None = None

    state: QuoteState = QuoteState.DRAFT
    sub_state: QuoteSubState = QuoteSubState.IN_PROGRESS

    total_base_amount: Money = Decimal("0.00")
    total_line_amount: Money = Decimal("0.00")
    total_discount: Money = Decimal("0.00")
    total_tax: Money = Decimal("0.00")
    total_amount: Money = Decimal("0.00")

    effective_from: date | None = None
    effective_to: date | None = None

    closing_notes: str | None = None
    closed_on: datetime | None = None

    created_by: str = "anonymous"
    created_on: datetime
    modified_on: datetime

    model_config = ConfigDict(from_attributes=True)


class QuoteTotals(BaseModel):
    """Kalemlerden hesaplanan teklif toplamlari."""
    total_base_amount: Money = Decimal("0.00")
    total_line_amount: Money = Decimal("0.00")
    total_discount: Money = Decimal("0.00")
    total_tax: Money = Decimal("0.00")
    total_amount: Money = Decimal("0.00")
    line_count: int = 0
    total_quantity: int = 0


# ============================================================
# Giris semalari (API ve motor sinirinda validasyon)
# ============================================================

class QuoteLineCreate(BaseModel):
    """Teklif kalemi olusturma semasi."""
    product_id: uuid.UUID | None = None
    description: str = Field(min_length=1, max_length=255)
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    manual_discount: Decimal = Field(default=Decimal("0.00"), ge=0, max_digits=12, decimal_places=2)
    tax: Decimal = Field(default=Decimal("0.00"), ge=0, max_digits=12, decimal_places=2)


class QuoteLineUpdate(BaseModel):
    """Teklif kalemi guncelleme semasi. Sadece gonderilen alanlar degisir."""
    product_id: uuid.UUID | None = None
    description: str | None = Field(default=None, min_length=1, max_length=255)
    quantity: int | None = Field(default=None, gt=0)
    unit_price: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    manual_discount: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    tax: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)


class QuoteCreate(BaseModel):
    """Teklif olusturma semasi."""
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    customer: CustomerRef | None = None
    opportunity_id: uuid.UUID | None = None
    effective_from: date | None = None
    effective_to: date | None = None
    lines: list[QuoteLineCreate] = []


class QuoteUpdate(BaseModel):
    """Teklif guncelleme semasi (sadece taslak tekliflerde)."""
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    customer: CustomerRef | None = None
    opportunity_id: uuid.UUID | None = None
    effective_from: date | None = None
    effective_to: date | None = None
    change_reason: str | None = None


class ActivateRequest(BaseModel):
    """Aktiflestirme sirasinda gecerlilik tarihleri de guncellenebilir."""
    effective_from: date | None = None
    effective_to: date | None = None


class CloseRequest(BaseModel):
    """Kazanma / kaybetme / iptal notu."""
    closing_notes: str | None = None


class BulkDeleteRequest(BaseModel):
    line_ids: list[uuid.UUID] = Field(min_length=1)


class BulkDiscountRequest(BaseModel):
    line_ids: list[uuid.UUID] = Field(min_length=1)
    mode: str
    value: Decimal


# ============================================================
# Sonuc semalari
# ============================================================

class QuoteDetail(BaseModel):
    """Teklif + kalemleri + guncel toplamlari."""
    quote: Quote
    lines: list[QuoteLine] = []


class QuoteListResponse(BaseModel):
    """Teklif listesi (sayfalama destekli)."""
    items: list[Quote]
    total: int
    page: int
    size: int


class QuoteStatistics(BaseModel):
    total: int = 0
    draft: int = 0
    active: int = 0
    won: int = 0
    lost: int = 0
    total_value: Money = Decimal("0.00")
    won_value: Money = Decimal("0.00")
    average_value: Money = Decimal("0.00")
    win_rate: int = 0


class ValidationStatus(BaseModel):
    """Arayuzun hangi butonlari gosterecegine karar vermesi icin."""
    can_edit: bool
    can_activate: bool
    can_win: bool
    can_lose: bool
    can_cancel: bool
    can_delete: bool
    can_revise: bool
    is_expired: bool
    is_expiring_soon: bool
    errors: list[str] = []
    warnings: list[str] = []
