from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, SecretStr


# --- Key records ---
class PublicKey(BaseModel):
    """Verification half of a signing key, the only view the publisher gets."""

    model_config = ConfigDict(frozen=True)

    kid: str
    algorithm: str
    public_key: str  # PEM SubjectPublicKeyInfo
    created_at: datetime
    expires_at: datetime


class KeyRecord(BaseModel):
    """A stored signing key. Immutable once created.

    Validity is never stored: a record is valid at ``now`` iff
    ``expires_at > now``.
    """

    model_config = ConfigDict(frozen=True)

    kid: str
    algorithm: str
    public_key: str  # PEM SubjectPublicKeyInfo
    private_key: SecretStr  # PEM PKCS#8
    created_at: datetime
    expires_at: datetime

    def is_valid(self, now: datetime) -> bool:
        return self.expires_at > now

    def public_view(self) -> PublicKey:
        return PublicKey(
            kid=self.kid,
            algorithm=self.algorithm,
            public_key=self.public_key,
            created_at=self.created_at,
            expires_at=self.expires_at,
        )


# --- JWKS ---
class JWK(BaseModel):
    kid: str
    alg: str
    use: str = "sig"
    kty: str = "RSA"
    n: str
    e: str


class JWKSet(BaseModel):
    keys: list[JWK] = Field(default_factory=list)
