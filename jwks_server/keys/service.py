import asyncio
import logging
from datetime import datetime, timedelta, timezone

from jose import jwk

from jwks_server.config import settings
from jwks_server.exceptions import KeyServiceError
from jwks_server.keys.generator import generate_key_pair
from jwks_server.keys.schemas import JWK, JWKSet, KeyRecord, PublicKey
from jwks_server.keys.store import KeyStore

logger = logging.getLogger(__name__)


# --- Publishing ---
def to_jwk(public_key: PublicKey) -> JWK:
    """Project a public key into its JWKS entry (base64url ``n``/``e``)."""
    fields = jwk.construct(public_key.public_key, public_key.algorithm).to_dict()
    return JWK(
        kid=public_key.kid,
        alg=public_key.algorithm,
        use="sig",
        kty=fields["kty"],
        n=fields["n"],
        e=fields["e"],
    )


async def publish_jwks(store: KeyStore, now: datetime) -> JWKSet:
    records = await store.list_valid(now)
    return JWKSet(keys=[to_jwk(record.public_view()) for record in records])


# --- Minting ---
async def mint_key(
    store: KeyStore, validity: timedelta, now: datetime | None = None
) -> KeyRecord:
    """Generate a key pair off the event loop and insert it."""
    record = await asyncio.to_thread(generate_key_pair, validity, now=now)
    await store.insert(record)
    logger.info("Chave de assinatura criada: kid=%s, expira=%s", record.kid, record.expires_at.isoformat())
    return record


async def ensure_signing_keys(
    store: KeyStore,
    now: datetime | None = None,
    seed_expired: bool | None = None,
) -> list[KeyRecord]:
    """Make sure a valid key (and, if enabled, an expired one) exists.

    A new valid key is also minted when the freshest one expires within the
    refresh margin, so issuance never runs dry between refresh ticks.
    """
    now = now or datetime.now(timezone.utc)
    if seed_expired is None:
        seed_expired = settings.seed_expired_key

    minted: list[KeyRecord] = []
    margin = timedelta(seconds=settings.key_refresh_margin_seconds)

    freshest = await store.pick_valid(now)
    if freshest is None or freshest.expires_at - now <= margin:
        minted.append(
            await mint_key(store, timedelta(seconds=settings.key_validity_seconds), now=now)
        )

    if seed_expired and await store.pick_expired(now) is None:
        minted.append(
            await mint_key(store, timedelta(seconds=-settings.expired_key_age_seconds), now=now)
        )

    return minted


async def keep_signing_keys_fresh(store: KeyStore, interval: float) -> None:
    """Background loop run for the lifetime of the app."""
    while True:
        await asyncio.sleep(interval)
        try:
            await ensure_signing_keys(store)
        except KeyServiceError as exc:
            # Next tick retries; the current valid key stays usable until it expires
            logger.error("Falha ao renovar chaves de assinatura: %s", type(exc).__name__)
