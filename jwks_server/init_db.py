"""Startup script: create tables and seed signing keys."""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from jwks_server.database import Base, async_session, engine
from jwks_server.keys.service import ensure_signing_keys
from jwks_server.keys.store import KeyStore

# Import all models so Base.metadata knows about them
from jwks_server.keys.models import SigningKey  # noqa: F401

logger = logging.getLogger(__name__)


async def init_db(db_engine: AsyncEngine) -> None:
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Tabelas do banco criadas/verificadas.")


async def seed_keys(store: KeyStore) -> None:
    minted = await ensure_signing_keys(store)
    if not minted:
        logger.info("Chaves de assinatura já existem, pulando seed.")
        return
    logger.info("Seed de %d chave(s) de assinatura concluído.", len(minted))


async def startup(db_engine: AsyncEngine, store: KeyStore) -> None:
    await init_db(db_engine)
    await seed_keys(store)


async def _main() -> None:
    await startup(engine, KeyStore(async_session))
    await engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(_main())
