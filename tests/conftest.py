"""
KolayTeklif - Test Yapilandirmasi (conftest.py)

SQLite in-memory veritabani kullanarak PostgreSQL gerektirmeden
tum API endpoint'lerini test etmeye olanak saglar.
Servis testleri icin bellekte calisan depo (InMemoryQuoteRepository) kullanilir.

Her test fonksiyonu icin temiz bir veritabani olusturulur (function scope).
"""

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from kolayteklif.database import Base, get_db
from kolayteklif.dependencies import get_opportunity_client
from kolayteklif.main import app
from kolayteklif.rate_limit import limiter
from kolayteklif.repositories.memory import InMemoryQuoteRepository
from kolayteklif.repositories.sql import SqlQuoteRepository
from kolayteklif.schemas.quote import QuoteCreate, QuoteLineCreate
from kolayteklif.services.quote import QuoteService
from kolayteklif.services.template import QuoteTemplateService

# Tum modelleri import et - Base.metadata.create_all icin gerekli
from kolayteklif.models import Quote, QuoteLine, QuoteTemplate, QuoteVersion  # noqa: F401


# ---------------------------------------------------------------------------
# SQLite In-Memory Test Veritabani
# ---------------------------------------------------------------------------

SQLITE_TEST_URL = "sqlite:///file::memory:?cache=shared"

test_engine = create_engine(
    SQLITE_TEST_URL,
    connect_args={"check_same_thread": False},
    echo=False,
)

# SQLite'da foreign key desteigni aktif et
# SQLite varsayilan olarak foreign key constraint'leri uygulamaz
@event.listens_for(test_engine, "connect")
def _set_sqlite_pragma(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

# Testlerde kullanilan sabit "simdi": 10 Mart 2026
NOW = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)
TODAY = NOW.date()


# ---------------------------------------------------------------------------
# Sahte firsat servisi
# ---------------------------------------------------------------------------

class RecordingOpportunityClient:
    """
    Firsat servisine yapilan cagrilari kaydeder.
    succeed=False: servis basarisiz yanit verir
    error: verilirse cagri sirasinda bu hata firlatilir
    opportunities: get_opportunity ile okunabilecek firsatlar (ID -> OpportunityInfo)
    """

    def __init__(self, succeed: bool = True, error: Exception | None = None):
        self.succeed = succeed
        self.error = error
        self.calls = []
        self.opportunities = {}

    def get_opportunity(self, opportunity_id):
        return self.opportunities.get(opportunity_id)

    def close_opportunity_as_won(self, opportunity_id, request) -> bool:
        self.calls.append((opportunity_id, request))
        if self.error is not None:
            raise self.error
        return self.succeed


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="function")
def db_session():
    """
    Her test icin temiz bir veritabani oturumu olusturur.

    - Tablolari olusturur (create_all)
    - Test bittikten sonra tablolari siler (drop_all)
    - Boylece her test izole calisir
    """
    Base.metadata.create_all(bind=test_engine)

    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(scope="function")
def opportunity_client():
    return RecordingOpportunityClient()


@pytest.fixture(scope="function")
def client(db_session, opportunity_client):
    """
    FastAPI TestClient olusturur.

    get_db dependency'sini override ederek test veritabanini kullanir.
    Firsat servisi yerine kayit tutan sahte istemci kullanilir.
    """
    def _override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_opportunity_client] = lambda: opportunity_client
    # Onceki testlerin istekleri rate limit sayacina yansimasin
    limiter.reset()

    with TestClient(app, raise_server_exceptions=False) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def repository():
    return InMemoryQuoteRepository()


@pytest.fixture(scope="function")
def service(repository, opportunity_client):
    """Bellekteki depo ve sabit saatle calisan teklif servisi."""
    return QuoteService(repository, opportunity_client, clock=lambda: NOW)


@pytest.fixture(scope="function")
def template_service(service):
    return QuoteTemplateService(service)


@pytest.fixture(scope="function")
def sql_template_service(sql_service):
    return QuoteTemplateService(sql_service)


@pytest.fixture(scope="function")
def sql_service(db_session, opportunity_client):
    """SQLite veritabani uzerinde calisan teklif servisi."""
    return QuoteService(SqlQuoteRepository(db_session), opportunity_client, clock=lambda: NOW)


def sample_lines() -> list[QuoteLineCreate]:
    """
    Iki ornek kalem:
        5 x 100.00, iskonto 50.00, vergi 21.00 -> 471.00
        10 x 50.00, iskonto 25.00, vergi 10.00 -> 485.00
    """
    return [
        QuoteLineCreate(
            description="Web Sitesi Tasarimi",
            quantity=5,
            unit_price=Decimal("100.00"),
            manual_discount=Decimal("50.00"),
            tax=Decimal("21.00"),
        ),
        QuoteLineCreate(
            description="Teknik Destek",
            quantity=10,
            unit_price=Decimal("50.00"),
            manual_discount=Decimal("25.00"),
            tax=Decimal("10.00"),
        ),
    ]


def make_quote_data(**overrides) -> QuoteCreate:
    data = {
        "name": "Kurumsal web paketi",
        "effective_from": TODAY,
        "effective_to": date(2026, 4, 10),
        "lines": sample_lines(),
    }
    data.update(overrides)
    return QuoteCreate(**data)


@pytest.fixture(scope="function")
def draft_quote(service):
    """Iki kalemli, tarihleri dolu taslak teklif."""
    return service.create_quote(make_quote_data(), created_by="ayse").quote


@pytest.fixture(scope="function")
def active_quote(service, draft_quote):
    return service.activate(draft_quote.quote_id, created_by="ayse").quote


@pytest.fixture(scope="function")
def opportunity_id():
    return uuid.uuid4()
