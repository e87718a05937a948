"""Database engine and schema management.

The broker owns sessions itself (see ``pactcore.service.PactBroker``); this
module only builds the engine and brings the schema up to date.
"""

import asyncio
import logging
from pathlib import Path

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from broker.config import settings

logger = logging.getLogger(__name__)

ALEMBIC_INI = Path(__file__).resolve().parent.parent / "alembic.ini"


def _is_memory_sqlite(url) -> bool:
    return url.database in (None, "", ":memory:") or url.query.get("mode") == "memory"


def _prepare_sqlite_file(database_url: str) -> None:
    """Create the parent directory of a file-backed sqlite database."""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite" or _is_memory_sqlite(url):
        return
    Path(url.database).parent.mkdir(parents=True, exist_ok=True)


_prepare_sqlite_file(settings.database_url)

engine = create_async_engine(settings.database_url, echo=settings.debug)


class Base(DeclarativeBase):
    pass


async def create_schema(bind: AsyncEngine) -> None:
    """Idempotent DDL straight from the models; used for sqlite and tests."""
    import broker.models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def _alembic_upgrade(database_url: str) -> None:
    from alembic import command
    from alembic.config import Config

    alembic_cfg = Config(str(ALEMBIC_INI))
    # configparser interpolation treats '%' specially
    alembic_cfg.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))
    command.upgrade(alembic_cfg, "head")


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Bring the schema up to date: create_all on sqlite, Alembic elsewhere."""
    bind = bind or engine
    if bind.url.get_backend_name() == "sqlite":
        if not _is_memory_sqlite(bind.url):
            logger.warning(
                "SQLite detected; fine for a single broker process. "
                "Set PACT_BROKER_DATABASE_URL to a Postgres URL for production."
            )
        await create_schema(bind)
    else:
        # alembic's env drives its own event loop
        await asyncio.to_thread(_alembic_upgrade, bind.url.render_as_string(hide_password=False))
    logger.info("Schema ready on %s", bind.url.render_as_string(hide_password=True))


async def close_db() -> None:
    await engine.dispose()
