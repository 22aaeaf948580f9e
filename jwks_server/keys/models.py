from datetime import datetime

from pydantic import SecretStr
from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from jwks_server.database import Base, UTCDateTime
from jwks_server.keys.schemas import KeyRecord


class SigningKey(Base):
    """One RSA key pair. Rows are inserted once and never updated."""

    __tablename__ = "signing_keys"

    kid: Mapped[str] = mapped_column(String(64), primary_key=True)
    algorithm: Mapped[str] = mapped_column(String(16), nullable=False)
    public_key: Mapped[str] = mapped_column(Text, nullable=False)
    private_key: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)

    @classmethod
    def from_record(cls, record: KeyRecord) -> "SigningKey":
        return cls(
            kid=record.kid,
            algorithm=record.algorithm,
            public_key=record.public_key,
            private_key=record.private_key.get_secret_value(),
            created_at=record.created_at,
            expires_at=record.expires_at,
        )

    def to_record(self) -> KeyRecord:
        return KeyRecord(
            kid=self.kid,
            algorithm=self.algorithm,
            public_key=self.public_key,
            private_key=SecretStr(self.private_key),
            created_at=self.created_at,
            expires_at=self.expires_at,
        )
