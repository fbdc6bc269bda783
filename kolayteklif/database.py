"""
Teklif veritabani baglantisi.

quotes, quote_lines, quote_versions ve quote_templates tablolari bu
Base uzerinden tanimlanir. Uretimde PostgreSQL, yerel denemelerde
SQLite (DATABASE_URL=sqlite:///./kolayteklif.db) kullanilabilir.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from kolayteklif.config import settings


def _connect_args(url: str) -> dict:
    # SQLite baglantisi FastAPI'nin thread havuzunda paylasilir
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


# SQL loglari logging_config'teki sqlalchemy.engine seviyesine bagli
engine = create_engine(
    settings.DATABASE_URL,
    echo=False,
    connect_args=_connect_args(settings.DATABASE_URL),
)

# Commit SqlQuoteRepository.transaction() icinde yapilir
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    pass


def get_db():
    """
    Istek basina bir oturum. get_quote_repository bu oturumla
    SqlQuoteRepository olusturur; istek bitince oturum kapanir.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
