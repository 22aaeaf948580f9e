"""RSA key pair generation for RS256 signing keys.

Generation is pure: the caller decides whether and where to store the
returned record.
"""

import uuid
from datetime import datetime, timedelta, timezone

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from pydantic import SecretStr

from jwks_server.config import settings
from jwks_server.exceptions import KeyGenerationError
from jwks_server.keys.schemas import KeyRecord

_PUBLIC_EXPONENT = 65537


def generate_key_pair(
    validity: timedelta,
    *,
    now: datetime | None = None,
    key_size: int | None = None,
) -> KeyRecord:
    """Mint a fresh RSA key pair with a new ``kid``.

    ``expires_at`` is ``now + validity`` truncated to whole seconds so that a
    token's ``exp`` claim can carry it exactly. A negative ``validity`` yields
    a record that is already expired.
    """
    created_at = now or datetime.now(timezone.utc)
    expires_at = (created_at + validity).replace(microsecond=0)

    try:
        private_key = rsa.generate_private_key(
            public_exponent=_PUBLIC_EXPONENT,
            key_size=key_size or settings.key_size,
        )
        private_pem = private_key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        ).decode()
        public_pem = (
            private_key.public_key()
            .public_bytes(
                serialization.Encoding.PEM,
                serialization.PublicFormat.SubjectPublicKeyInfo,
            )
            .decode()
        )
    except (ValueError, UnsupportedAlgorithm) as exc:
        raise KeyGenerationError(f"Falha ao gerar par RSA: {type(exc).__name__}") from exc

    return KeyRecord(
        kid=str(uuid.uuid4()),
        algorithm=settings.jwt_algorithm,
        public_key=public_pem,
        private_key=SecretStr(private_pem),
        created_at=created_at,
        expires_at=expires_at,
    )
