"""
Teklif motoru hata siniflari.

Uc farkli hata turu vardir:
    QuoteValidationError    - Istek gecersiz, duzeltilip tekrar denenebilir (400)
    QuoteNotFoundError      - Teklif / kalem / versiyon bulunamadi (404)
    InvariantViolationError - Programlama hatasi, asla olmamali (500)

Kismi hatalar (ornegin teklif kazanildi ama firsat kapatilamadi) exception
degildir; TransitionResult.warnings listesinde doner.
"""
import uuid
from dataclasses import dataclass


@dataclass(frozen=True)
class ValidationIssue:
    """Tek bir validasyon problemi: hangi alan, hangi kural, okunabilir mesaj."""
    field: str
    constraint: str
    message: str

    def to_dict(self) -> dict:
        return {"field": self.field, "constraint": self.constraint, "message": self.message}


class QuoteEngineError(Exception):
    """Teklif motorundan firlatilan tum hatalarin temel sinifi."""


class QuoteValidationError(QuoteEngineError):
    """
    Islem validasyondan gecemedi.
    Gecersiz durum gecisi, taslak olmayan teklifte degisiklik, iskontonun
    tutari asmasi, hatali tarih sirasi, sifir/negatif miktar gibi durumlar.
    """

    def __init__(self, issues: list[ValidationIssue]):
        if not issues:
            raise ValueError("QuoteValidationError en az bir problem icermeli")
        self.issues = list(issues)
        super().__init__("; ".join(issue.message for issue in self.issues))

    @classmethod
    def single(cls, field: str, constraint: str, message: str) -> "QuoteValidationError":
        return cls([ValidationIssue(field=field, constraint=constraint, message=message)])

    @property
    def field(self) -> str:
        """Ilk problemin alan adi (tek hatali durumlar icin kisayol)."""
        return self.issues[0].field

    @property
    def fields(self) -> list[str]:
        return [issue.field for issue in self.issues]

    def to_dict(self) -> dict:
        return {
            "detail": str(self),
            "errors": [issue.to_dict() for issue in self.issues],
        }


class QuoteNotFoundError(QuoteEngineError):
    """Istenen teklif, kalem veya versiyon bulunamadi."""

    def __init__(self, entity: str, entity_id: uuid.UUID | str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} bulunamadi (ID: {entity_id})")


class InvariantViolationError(QuoteEngineError):
    """
    Motorun garanti ettigi bir kural bozuldu.
    Ornek: teklif toplamlari kalemlerin toplamindan farkli.
    Sessizce duzeltilmez, yakalanmadan yukari firlatilir.
    """
