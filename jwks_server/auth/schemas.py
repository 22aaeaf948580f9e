from pydantic import BaseModel, ConfigDict, StrictStr


class AuthRequest(BaseModel):
    """Credentials posted to ``/auth``. Accepted as-is, never checked."""

    model_config = ConfigDict(extra="ignore")

    username: StrictStr
    password: StrictStr
