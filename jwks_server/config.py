import logging

from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

_SUPPORTED_ALGORITHM = "RS256"
_MIN_PRODUCTION_KEY_SIZE = 2048


class Settings(BaseSettings):
    app_env: str = "development"
    app_debug: bool = False
    log_level: str = "INFO"

    host: str = "127.0.0.1"
    port: int = 8080

    database_url: str = "sqlite+aiosqlite:///./keys.db"

    jwt_algorithm: str = _SUPPORTED_ALGORITHM
    jwt_issuer: str = "jwks-server"

    # RSA modulus size in bits (KEY_SIZE)
    key_size: int = 2048
    # Lifetime of freshly minted signing keys
    key_validity_seconds: int = 3600
    # How far in the past expired keys are dated
    expired_key_age_seconds: int = 3600
    seed_expired_key: bool = True

    # Background refresh: mint a new key when the freshest one is about to expire
    key_refresh_interval_seconds: int = 300
    key_refresh_margin_seconds: int = 600

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    def validate_key_settings(self) -> None:
        """Raise if the key lifecycle settings are inconsistent."""
        if self.jwt_algorithm != _SUPPORTED_ALGORITHM:
            raise ValueError(
                f"JWT_ALGORITHM inválido: {self.jwt_algorithm}. Apenas {_SUPPORTED_ALGORITHM} é suportado."
            )
        if self.key_validity_seconds <= 0 or self.expired_key_age_seconds <= 0:
            raise ValueError(
                "KEY_VALIDITY_SECONDS e EXPIRED_KEY_AGE_SECONDS devem ser positivos."
            )
        if self.key_refresh_interval_seconds <= 0:
            raise ValueError("KEY_REFRESH_INTERVAL_SECONDS deve ser positivo.")
        if self.key_refresh_margin_seconds >= self.key_validity_seconds:
            raise ValueError(
                "KEY_REFRESH_MARGIN_SECONDS deve ser menor que KEY_VALIDITY_SECONDS."
            )
        # Otherwise the freshest key can expire between two refresh ticks
        if self.key_refresh_interval_seconds >= self.key_refresh_margin_seconds:
            raise ValueError(
                "KEY_REFRESH_INTERVAL_SECONDS deve ser menor que KEY_REFRESH_MARGIN_SECONDS."
            )

        if self.key_size < _MIN_PRODUCTION_KEY_SIZE:
            if self.app_env == "production":
                raise ValueError(
                    f"KEY_SIZE deve ter no mínimo {_MIN_PRODUCTION_KEY_SIZE} bits em produção."
                )
            logger.warning(
                "SEGURANÇA: Usando chaves RSA de %d bits. "
                "Configure KEY_SIZE >= %d antes de ir para produção.",
                self.key_size,
                _MIN_PRODUCTION_KEY_SIZE,
            )


settings = Settings()
