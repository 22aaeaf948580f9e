from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from jwks_server.auth.schemas import AuthRequest
from jwks_server.auth.service import TokenIntent, issue_token
from jwks_server.keys.dependencies import get_key_store
from jwks_server.keys.store import KeyStore

router = APIRouter()


@router.post("/auth", response_class=PlainTextResponse)
async def auth(
    data: AuthRequest,
    expired: bool = False,
    store: KeyStore = Depends(get_key_store),
):
    """Issue a signed JWT. ``?expired=true`` signs with an expired key.

    Credentials are not verified against any user store.
    """
    intent = TokenIntent.EXPIRED if expired else TokenIntent.NORMAL
    token = await issue_token(store, intent, data, now=datetime.now(timezone.utc))
    return PlainTextResponse(token, headers={"Cache-Control": "no-store"})
