"""
KolayTeklif migration ortami.

Baglanti adresi alembic.ini yerine kolayteklif.config.settings.DATABASE_URL
degerinden gelir. SQLite'ta ALTER TABLE kisitli oldugu icin batch modu acilir.
"""
import sys
from pathlib import Path
from logging.config import fileConfig

from sqlalchemy import engine_from_config
from sqlalchemy import pool

from alembic import context

# alembic komutu proje kokunden calistirilmadiginda da kolayteklif bulunsun
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from kolayteklif.database import Base
from kolayteklif.config import settings
import kolayteklif.models  # noqa: F401 - quotes, quote_lines, quote_versions, quote_templates

config = context.config
config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def run_migrations_offline() -> None:
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=_is_sqlite(url),
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            # Tutar kolonlarinin Numeric hassasiyeti de karsilastirilir
            compare_type=True,
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
