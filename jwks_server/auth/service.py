"""Token issuance bound to a stored signing key.

The token's ``exp`` always equals the ``expires_at`` of the key that signed
it: a normal token never outlives its key, and a token signed with an expired
key is already expired when issued.
"""

import enum
import logging
import uuid
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone

from jose import jwt
from jose.exceptions import JOSEError
from pydantic import ValidationError

from jwks_server.auth.schemas import AuthRequest
from jwks_server.config import settings
from jwks_server.exceptions import InvalidInputError, NoValidKeyError, SigningError
from jwks_server.keys.schemas import KeyRecord
from jwks_server.keys.service import mint_key
from jwks_server.keys.store import KeyStore

logger = logging.getLogger(__name__)


class TokenIntent(str, enum.Enum):
    NORMAL = "normal"
    EXPIRED = "expired"


def _parse_credentials(credentials: AuthRequest | Mapping) -> AuthRequest:
    if isinstance(credentials, AuthRequest):
        return credentials
    try:
        return AuthRequest.model_validate(credentials)
    except ValidationError as exc:
        raise InvalidInputError("Corpo da requisição deve conter username e password") from exc


def build_claims(record: KeyRecord, subject: str, now: datetime) -> dict:
    return {
        "iss": settings.jwt_issuer,
        "sub": subject,
        "iat": int(now.timestamp()),
        "exp": int(record.expires_at.timestamp()),
        "jti": str(uuid.uuid4()),
    }


async def _select_key(store: KeyStore, intent: TokenIntent, now: datetime) -> KeyRecord:
    if intent is TokenIntent.NORMAL:
        record = await store.pick_valid(now)
        if record is None:
            # Never fall back to an expired key here
            raise NoValidKeyError("Nenhuma chave de assinatura válida disponível")
        return record

    record = await store.pick_expired(now)
    if record is None:
        logger.info("Nenhuma chave expirada disponível, gerando sob demanda")
        record = await mint_key(
            store, timedelta(seconds=-settings.expired_key_age_seconds), now=now
        )
    return record


def sign_token(record: KeyRecord, claims: dict) -> str:
    try:
        return jwt.encode(
            claims,
            record.private_key.get_secret_value(),
            algorithm=record.algorithm,
            headers={"kid": record.kid},
        )
    except (JOSEError, ValueError) as exc:
        raise SigningError(f"Falha ao assinar token com kid={record.kid}") from exc


async def issue_token(
    store: KeyStore,
    intent: TokenIntent,
    credentials: AuthRequest | Mapping,
    now: datetime | None = None,
) -> str:
    """Sign a JWT for ``credentials.username`` with a key chosen by ``intent``."""
    creds = _parse_credentials(credentials)
    now = now or datetime.now(timezone.utc)

    record = await _select_key(store, intent, now)
    token = sign_token(record, build_claims(record, creds.username, now))
    logger.info("Token emitido: intent=%s, kid=%s", intent.value, record.kid)
    return token
