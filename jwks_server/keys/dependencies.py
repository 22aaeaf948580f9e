from fastapi import Request

from jwks_server.keys.store import KeyStore


def get_key_store(request: Request) -> KeyStore:
    """Return the process-wide key store attached to the app."""
    return request.app.state.key_store
