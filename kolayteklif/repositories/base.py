"""
Teklif deposu (persistence) arayuzu.

Teklif motoru verinin nerede tutuldugunu bilmez; bu arayuzu uygulayan
herhangi bir depo ile calisir. Hangi deponun kullanilacagina uygulama
baslarken (dependencies.py) bir kez karar verilir.

Uygulamalar:
    SqlQuoteRepository      - SQLAlchemy oturumu (PostgreSQL / SQLite)
    InMemoryQuoteRepository - Bellekte tutulan depo (demo ve testler)
"""
import uuid
from contextlib import AbstractContextManager
from typing import Protocol

from kolayteklif.schemas.quote import Quote, QuoteLine, QuoteState
from kolayteklif.schemas.template import QuoteTemplate
from kolayteklif.schemas.version import QuoteVersion


class QuoteRepository(Protocol):

    def transaction(self) -> AbstractContextManager[None]:
        """Blok basarili biterse kaydet, hata olursa tum degisiklikleri geri al."""
        ...

    def load_quote(self, quote_id: uuid.UUID) -> Quote | None: ...

    def save_quote(self, quote: Quote) -> None: ...

    def load_lines(self, quote_id: uuid.UUID) -> list[QuoteLine]: ...

    def save_lines(self, quote_id: uuid.UUID, lines: list[QuoteLine]) -> None:
        """Teklifin kalem kumesini verilen liste ile degistir (listede olmayanlar silinir)."""
        ...

    def append_version(self, version: QuoteVersion) -> None: ...

    def load_versions(self, quote_id: uuid.UUID) -> list[QuoteVersion]:
        """Teklifin tum versiyonlari, version_number'a gore artan sirada."""
        ...

    def load_version(self, version_id: uuid.UUID) -> QuoteVersion | None: ...

    def delete_quote_cascade(self, quote_id: uuid.UUID) -> bool:
        """Teklifi kalemleri ve versiyonlariyla birlikte sil. Yoksa False."""
        ...

    def list_quotes(
        self,
        search: str | None = None,
        state: QuoteState | None = None,
        sort: str | None = None,
        skip: int = 0,
        limit: int | None = None,
        customer_id: uuid.UUID | None = None,
        opportunity_id: uuid.UUID | None = None,
    ) -> tuple[list[Quote], int]: ...

    def max_quote_sequence(self, prefix: str) -> int:
        """'TEK-2026-' gibi bir on ek icin kullanilan en buyuk sira numarasi, yoksa 0."""
        ...

    # --- Sablonlar ---

    def save_template(self, template: QuoteTemplate) -> None: ...

    def load_template(self, template_id: uuid.UUID) -> QuoteTemplate | None: ...

    def list_templates(
        self, shared: bool | None = None, owner: str | None = None
    ) -> list[QuoteTemplate]:
        """Sablonlar, ada gore sirali. shared/owner verilirse filtrelenir."""
        ...

    def delete_template(self, template_id: uuid.UUID) -> bool: ...
