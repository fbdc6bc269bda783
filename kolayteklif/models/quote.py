"""
Teklif (Quote) modeli.
Musteriye verilen fiyat teklifini ve kalemlerini temsil eder.
Taslak -> Aktif -> Kazanildi / Kapatildi yasam dongusunu izler.
"""
import uuid
from datetime import datetime, date
from decimal import Decimal

from sqlalchemy import String, Text, DateTime, Date, ForeignKey, Numeric, Integer, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from kolayteklif.database import Base


class Quote(Base):
    """
    Teklif modeli.
    Toplam alanlari kalemlerden hesaplanir, elle guncellenmez.
    Kalemler (QuoteLine) ve versiyonlar (QuoteVersion) ile birlikte calisir.
    """

    __tablename__ = "quotes"
    __table_args__ = (
        # Musteri referansi: tip ve ID ya ikisi birden dolu ya ikisi birden bos
        CheckConstraint(
            "(customer_kind IS NULL AND customer_id IS NULL) OR "
            "(customer_kind IN ('account', 'contact') AND customer_id IS NOT NULL)",
            name="ck_quotes_customer_ref",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4
    )

    # Teklif bilgileri
    quote_number: Mapped[str] = mapped_column(
        String(50), nullable=False, unique=True, index=True
    )
    name: Mapped[str] = mapped_column(
        String(255), nullable=False
    )
    description: Mapped[str | None] = mapped_column(
        Text, nullable=True
    )

    # Musteri: firma (account) veya kisi (contact)
    customer_kind: Mapped[str | None] = mapped_column(
        String(20), nullable=True
    )
    customer_id: Mapped[uuid.UUID | None] = mapped_column(
        nullable=True, index=True
    )
    # Iliskili satis firsati (opsiyonel, baska serviste tutulur)
    opportunity_id: Mapped[uuid.UUID | None] = mapped_column(
        nullable=True, index=True
    )

    # Durum: draft, active, won, closed
    state: Mapped[str] = mapped_column(
        String(20), default="draft", index=True
    )
    # Alt durum: in_progress, in_review, open, won, lost, canceled, revised
    sub_state: Mapped[str] = mapped_column(
        String(20), default="in_progress"
    )

    # Toplam tutarlar (kalemler degistikce yeniden hesaplanir)
    total_base_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), default=Decimal("0.00")
    )
    total_line_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), default=Decimal("0.00")
    )
    total_discount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), default=Decimal("0.00")
    )
    total_tax: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), default=Decimal("0.00")
    )
    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), default=Decimal("0.00")
    )

    # Gecerlilik araligi
    effective_from: Mapped[date | None] = mapped_column(
        Date, nullable=True
    )
    effective_to: Mapped[date | None] = mapped_column(
        Date, nullable=True
    )

    # Kapanis bilgileri (kazanildi / kaybedildi / iptal)
    closing_notes: Mapped[str | None] = mapped_column(
        Text, nullable=True
    )
    closed_on: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_by: Mapped[str] = mapped_column(
        String(100), default="anonymous"
    )
    created_on: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    modified_on: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Iliskiler
    lines: Mapped[list["QuoteLine"]] = relationship(
        back_populates="quote", cascade="all, delete-orphan",
        order_by="QuoteLine.position",
    )
    versions: Mapped[list["QuoteVersion"]] = relationship(
        back_populates="quote", cascade="all, delete-orphan",
        order_by="QuoteVersion.version_number",
    )


class QuoteLine(Base):
    """
    Teklif kalemi modeli.
    Sadece girdiler saklanir; tutar ve net tutar her okumada hesaplanir.
    Ornek: 5 adet x 100.00 TL, 50.00 TL iskonto, 21.00 TL vergi = 471.00 TL
    """

    __tablename__ = "quote_lines"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4
    )
    quote_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Urun katalogu baska serviste, sadece referans tutuyoruz
    product_id: Mapped[uuid.UUID | None] = mapped_column(
        nullable=True
    )

    description: Mapped[str] = mapped_column(
        String(255), nullable=False
    )
    quantity: Mapped[int] = mapped_column(
        Integer, nullable=False
    )
    unit_price: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False
    )
    manual_discount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0.00")
    )
    tax: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0.00")
    )
    # Teklif icindeki sira
    position: Mapped[int] = mapped_column(
        Integer, default=0
    )

    # Iliski
    quote: Mapped["Quote"] = relationship(back_populates="lines")
