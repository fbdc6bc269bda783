"""
Teklif sablonu modeli.
Sablon icerigi (teklif alanlari + kalemler) JSON olarak saklanir.
"""
import uuid
from datetime import datetime

from sqlalchemy import String, Text, DateTime, Integer, Boolean, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from kolayteklif.database import Base


class QuoteTemplate(Base):

    __tablename__ = "quote_templates"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(
        String(255), nullable=False
    )
    description: Mapped[str | None] = mapped_column(
        Text, nullable=True
    )
    # standard, custom, industry, service, product, bundle
    category: Mapped[str] = mapped_column(
        String(20), default="standard", index=True
    )
    # TemplateData JSON hali
    template_data: Mapped[dict] = mapped_column(
        JSON, nullable=False
    )

    owner: Mapped[str] = mapped_column(
        String(100), default="anonymous", index=True
    )
    is_shared: Mapped[bool] = mapped_column(
        Boolean, default=False
    )
    usage_count: Mapped[int] = mapped_column(
        Integer, default=0
    )

    created_on: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    modified_on: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
