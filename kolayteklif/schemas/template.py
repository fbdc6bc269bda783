"""
Teklif sablonu (QuoteTemplate) Pydantic semalari.
Sik hazirlanan teklifler sablon olarak saklanir; yeni teklif sablondan
tek adimda olusturulur.
"""
import uuid
from datetime import datetime, date
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, ConfigDict

from kolayteklif.schemas.quote import CustomerRef, Money


class QuoteTemplateCategory(str, Enum):
    STANDARD = "standard"
    CUSTOM = "custom"
    INDUSTRY = "industry"
    SERVICE = "service"
    PRODUCT = "product"
    BUNDLE = "bundle"


class TemplateLine(BaseModel):
    """Sablondaki kalem. Tutarlar teklif olusturulurken hesaplanir."""
    product_id: uuid.UUID | None = None
    description: str = Field(min_length=1, max_length=255)
    quantity: int = Field(gt=0)
    unit_price: Money = Field(ge=0, max_digits=12, decimal_places=2)
    manual_discount: Money = Field(default=Decimal("0.00"), ge=0, max_digits=12, decimal_places=2)
    tax: Money = Field(default=Decimal("0.00"), ge=0, max_digits=12, decimal_places=2)


class TemplateData(BaseModel):
    """Sablondan olusacak teklifin alanlari ve kalemleri."""
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    effective_from: date | None = None
    effective_to: date | None = None
    lines: list[TemplateLine] = []


class QuoteTemplate(BaseModel):
    """
    Teklif sablonu.
    usage_count: sablondan kac teklif olusturuldugu
    is_shared: diger kullanicilar da gorebilir
    """
    template_id: uuid.UUID = Field(default_factory=uuid.uuid4)
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    category: QuoteTemplateCategory = QuoteTemplateCategory.STANDARD
    template_data: TemplateData
    owner: str = "anonymous"
    is_shared: bool = False
    usage_count: int = Field(default=0, ge=0)
    created_on: datetime
    modified_on: datetime

    model_config = ConfigDict(from_attributes=True)


class QuoteTemplateCreate(BaseModel):
    """Sablon olusturma semasi."""
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    category: QuoteTemplateCategory = QuoteTemplateCategory.STANDARD
    template_data: TemplateData
    is_shared: bool = False


class QuoteTemplateUpdate(BaseModel):
    """Sablon guncelleme semasi. Sadece gonderilen alanlar degisir."""
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    category: QuoteTemplateCategory | None = None
    template_data: TemplateData | None = None
    is_shared: bool | None = None


class SaveAsTemplateRequest(BaseModel):
    """Mevcut bir teklifi sablon olarak kaydetme."""
    quote_id: uuid.UUID
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    category: QuoteTemplateCategory = QuoteTemplateCategory.STANDARD
    is_shared: bool = False


class ApplyTemplateRequest(BaseModel):
    """Sablondan teklif olustururken ezilebilecek alanlar."""
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    customer: CustomerRef | None = None
    opportunity_id: uuid.UUID | None = None
