from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from jwks_server.keys.dependencies import get_key_store
from jwks_server.keys.schemas import JWKSet
from jwks_server.keys.service import publish_jwks
from jwks_server.keys.store import KeyStore

router = APIRouter()


@router.get("/.well-known/jwks.json", response_model=JWKSet)
async def get_jwks(store: KeyStore = Depends(get_key_store)):
    """Public keys of every unexpired signing key."""
    return await publish_jwks(store, datetime.now(timezone.utc))
