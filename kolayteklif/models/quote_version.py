"""
Teklif versiyon modeli.
Her durum gecisi veya icerik degisikliginde teklifin tam bir kopyasi
(kalemler dahil) JSON olarak saklanir. Kayitlar sadece eklenir;
guncellenmez, sadece teklif silinince birlikte silinir.
"""
import uuid
from datetime import datetime

from sqlalchemy import String, Text, DateTime, ForeignKey, Integer, JSON, UniqueConstraint, event
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kolayteklif.database import Base
from kolayteklif.exceptions import InvariantViolationError


class QuoteVersion(Base):
    """Teklifin belirli bir andaki degismez kopyasi."""

    __tablename__ = "quote_versions"
    __table_args__ = (
        UniqueConstraint("quote_id", "version_number", name="uq_quote_versions_number"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4
    )
    quote_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Her teklif icin 1, 2, 3, ... seklinde artar
    version_number: Mapped[int] = mapped_column(
        Integer, nullable=False
    )
    # created, updated, activated, won, lost, revised, canceled,
    # product_added, product_removed, product_updated, discount_applied, price_changed
    change_type: Mapped[str] = mapped_column(
        String(30), nullable=False
    )
    change_description: Mapped[str | None] = mapped_column(
        Text, nullable=True
    )
    changed_fields: Mapped[list | None] = mapped_column(
        JSON, nullable=True
    )
    change_reason: Mapped[str | None] = mapped_column(
        Text, nullable=True
    )
    created_by: Mapped[str] = mapped_column(
        String(100), default="anonymous"
    )
    created_on: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    # Teklif alanlari + kalemler (VersionQuoteSnapshot JSON hali)
    version_data: Mapped[dict] = mapped_column(
        JSON, nullable=False
    )

    # Iliski
    quote: Mapped["Quote"] = relationship(back_populates="versions")


@event.listens_for(QuoteVersion, "before_update")
def _prevent_version_update(mapper, connection, target):
    # Versiyonlar degismez: guncelleme denemesi programlama hatasidir
    raise InvariantViolationError(
        f"Teklif versiyonu degistirilemez (ID: {target.id}, no: {target.version_number})"
    )
