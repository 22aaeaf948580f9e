"""Error taxonomy for the key lifecycle and token issuance core.

Core functions raise these unmodified; the HTTP layer maps them to responses
in ``jwks_server.main``. Server-side errors never reach the client with their
message, only with a generic detail.
"""


class KeyServiceError(Exception):
    """Base class for every error raised by the key and token core."""


class KeyGenerationError(KeyServiceError):
    """The RSA primitive or the randomness source failed."""


class StorageError(KeyServiceError):
    """The key table is unreachable or returned corrupt data."""


class DuplicateKeyError(StorageError):
    """A record with the same ``kid`` already exists."""

    def __init__(self, kid: str) -> None:
        super().__init__(f"kid já existe: {kid}")
        self.kid = kid


class NoValidKeyError(KeyServiceError):
    """No unexpired key is available for normal token issuance."""


class SigningError(KeyServiceError):
    """Signing the token with the selected key failed."""


class InvalidInputError(KeyServiceError):
    """The credentials submitted to the issuance endpoint are malformed."""
