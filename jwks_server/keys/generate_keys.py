"""Mint an RSA signing key into the configured database.

Usage:
    python -m jwks_server.keys.generate_keys [--validity SECONDS] [--expired]

Prints the new key's kid and expiry. The private key never leaves the
database.
"""

import argparse
import asyncio
from datetime import timedelta

from jwks_server.config import settings
from jwks_server.database import async_session, engine
from jwks_server.init_db import init_db
from jwks_server.keys.service import mint_key
from jwks_server.keys.store import KeyStore


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Gera uma chave RSA de assinatura.")
    parser.add_argument(
        "--validity",
        type=int,
        default=None,
        help="Validade da chave em segundos (padrão: KEY_VALIDITY_SECONDS, ou EXPIRED_KEY_AGE_SECONDS com --expired)",
    )
    parser.add_argument(
        "--expired",
        action="store_true",
        help="Gera uma chave já expirada (validade negativa)",
    )
    return parser.parse_args(argv)


async def _mint(validity: int) -> None:
    await init_db(engine)
    record = await mint_key(KeyStore(async_session), timedelta(seconds=validity))
    await engine.dispose()

    print(f"# kid: {record.kid}")
    print(f"# expires_at: {record.expires_at.isoformat()}")


def _resolve_validity(args: argparse.Namespace) -> int:
    """Validity in seconds; negative for expired keys. ``--validity 0`` is kept."""
    if args.expired:
        age = settings.expired_key_age_seconds if args.validity is None else args.validity
        return -abs(age)
    return settings.key_validity_seconds if args.validity is None else args.validity


def main(argv: list[str] | None = None) -> None:
    asyncio.run(_mint(_resolve_validity(_parse_args(argv))))


if __name__ == "__main__":
    main()
