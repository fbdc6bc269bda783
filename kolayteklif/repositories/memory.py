"""
Bellekte calisan teklif deposu.
Demo modu (QUOTE_STORAGE_BACKEND=memory) ve servis testleri icin kullanilir.
Versiyonlar teklif ID'sine gore indekslenir.

"memory" modunda tum istekler ayni depoyu paylasir. transaction() blogu
boyunca kilit tutulur; baska bir thread'in transaction'i blok bitene kadar bekler.
"""
import copy
import threading
import uuid
from contextlib import contextmanager

from kolayteklif.exceptions import InvariantViolationError
from kolayteklif.schemas.quote import Quote, QuoteLine, QuoteState
from kolayteklif.schemas.template import QuoteTemplate
from kolayteklif.schemas.version import QuoteVersion


class InMemoryQuoteRepository:

    def __init__(self):
        self._quotes: dict[uuid.UUID, Quote] = {}
        self._lines: dict[uuid.UUID, list[QuoteLine]] = {}
        self._versions: dict[uuid.UUID, list[QuoteVersion]] = {}
        self._versions_by_id: dict[uuid.UUID, QuoteVersion] = {}
        self._templates: dict[uuid.UUID, QuoteTemplate] = {}
        # Son basarili transaction sonundaki durum; hata olursa buraya donulur
        self._committed = self._copy_state()
        self._lock = threading.RLock()

    def _copy_state(self):
        return copy.deepcopy(
            (self._quotes, self._lines, self._versions, self._versions_by_id, self._templates)
        )

    @contextmanager
    def transaction(self):
        """
        SqlQuoteRepository ile ayni davranis: basarili biten her blok (ic ice
        olsa da) o ana kadarki degisiklikleri kalici yapar, hata olursa son
        kalici duruma donulur.
        """
        with self._lock:
            try:
                yield
            except Exception:
                (
                    self._quotes, self._lines, self._versions,
                    self._versions_by_id, self._templates,
                ) = copy.deepcopy(self._committed)
                raise
            self._committed = self._copy_state()

    def load_quote(self, quote_id: uuid.UUID) -> Quote | None:
        quote = self._quotes.get(quote_id)
        return quote.model_copy(deep=True) if quote else None

    def save_quote(self, quote: Quote) -> None:
        self._quotes[quote.quote_id] = quote.model_copy(deep=True)
        self._lines.setdefault(quote.quote_id, [])

    def list_quotes(
        self,
        search: str | None = None,
        state: QuoteState | None = None,
        sort: str | None = None,
        skip: int = 0,
        limit: int | None = None,
        customer_id: uuid.UUID | None = None,
        opportunity_id: uuid.UUID | None = None,
    ) -> tuple[list[Quote], int]:
        quotes = list(self._quotes.values())
        if search:
            term = search.lower()
            quotes = [
                q for q in quotes
                if term in q.quote_number.lower() or term in q.name.lower()
            ]
        if state:
            quotes = [q for q in quotes if q.state == state]
        if customer_id:
            quotes = [q for q in quotes if q.customer and q.customer.id == customer_id]
        if opportunity_id:
            quotes = [q for q in quotes if q.opportunity_id == opportunity_id]

        if sort == "total_asc":
            quotes.sort(key=lambda q: q.total_amount)
        elif sort == "total_desc":
            quotes.sort(key=lambda q: q.total_amount, reverse=True)
        elif sort == "number_asc":
            quotes.sort(key=lambda q: q.quote_number)
        else:
            quotes.sort(key=lambda q: (q.created_on, q.quote_number), reverse=True)

        total = len(quotes)
        end = None if limit is None else skip + limit
        return [q.model_copy(deep=True) for q in quotes[skip:end]], total

    def max_quote_sequence(self, prefix: str) -> int:
        sequences = [
            int(q.quote_number[len(prefix):])
            for q in self._quotes.values()
            if q.quote_number.startswith(prefix) and q.quote_number[len(prefix):].isdigit()
        ]
        return max(sequences, default=0)

    def delete_quote_cascade(self, quote_id: uuid.UUID) -> bool:
        if quote_id not in self._quotes:
            return False
        del self._quotes[quote_id]
        self._lines.pop(quote_id, None)
        for version in self._versions.pop(quote_id, []):
            self._versions_by_id.pop(version.version_id, None)
        return True

    def load_lines(self, quote_id: uuid.UUID) -> list[QuoteLine]:
        lines = sorted(self._lines.get(quote_id, []), key=lambda line: line.position)
        return [line.model_copy(deep=True) for line in lines]

    def save_lines(self, quote_id: uuid.UUID, lines: list[QuoteLine]) -> None:
        for line in lines:
            if line.quote_id != quote_id:
                raise InvariantViolationError(
                    f"Kalem {line.line_id} baska bir teklife ait ({line.quote_id})"
                )
        self._lines[quote_id] = [line.model_copy(deep=True) for line in lines]

    def append_version(self, version: QuoteVersion) -> None:
        if version.version_id in self._versions_by_id:
            raise InvariantViolationError(
                f"Versiyon zaten kayitli, uzerine yazilamaz (ID: {version.version_id})"
            )
        # QuoteVersion frozen oldugu icin kopyalamaya gerek yok
        self._versions.setdefault(version.quote_id, []).append(version)
        self._versions_by_id[version.version_id] = version

    def load_versions(self, quote_id: uuid.UUID) -> list[QuoteVersion]:
        return sorted(self._versions.get(quote_id, []), key=lambda v: v.version_number)

    def load_version(self, version_id: uuid.UUID) -> QuoteVersion | None:
        return self._versions_by_id.get(version_id)

    def save_template(self, template: QuoteTemplate) -> None:
        self._templates[template.template_id] = template.model_copy(deep=True)

    def load_template(self, template_id: uuid.UUID) -> QuoteTemplate | None:
        template = self._templates.get(template_id)
        return template.model_copy(deep=True) if template else None

    def list_templates(
        self, shared: bool | None = None, owner: str | None = None
    ) -> list[QuoteTemplate]:
        templates = list(self._templates.values())
        if shared is not None:
            templates = [t for t in templates if t.is_shared == shared]
        if owner:
            templates = [t for t in templates if t.owner == owner]
        templates.sort(key=lambda t: (t.name.lower(), t.created_on))
        return [t.model_copy(deep=True) for t in templates]

    def delete_template(self, template_id: uuid.UUID) -> bool:
        return self._templates.pop(template_id, None) is not None
