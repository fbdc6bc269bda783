# Tum modelleri buradan import ediyoruz
# Boylece Alembic autogenerate tum tablolari gorebilir
from kolayteklif.models.quote import Quote, QuoteLine
from kolayteklif.models.quote_template import QuoteTemplate
from kolayteklif.models.quote_version import QuoteVersion

__all__ = ["Quote", "QuoteLine", "QuoteTemplate", "QuoteVersion"]
