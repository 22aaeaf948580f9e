import os

# Keep the module-level engine away from the working directory
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from jwks_server.database import build_engine, build_sessionmaker  # noqa: E402
from jwks_server.init_db import init_db  # noqa: E402
from jwks_server.keys.generator import generate_key_pair  # noqa: E402
from jwks_server.keys.schemas import KeyRecord  # noqa: E402
from jwks_server.keys.store import KeyStore  # noqa: E402

T0 = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
HOUR = timedelta(hours=1)


@pytest.fixture(scope="session")
def key_material() -> KeyRecord:
    """One real RSA key pair reused by tests that only need distinct kids."""
    return generate_key_pair(HOUR, now=T0)


@pytest.fixture
def make_record(key_material):
    counter = iter(range(1_000_000))

    def _make(created_at: datetime, expires_at: datetime, kid: str | None = None) -> KeyRecord:
        return key_material.model_copy(
            update={
                "kid": kid or f"kid-{next(counter)}",
                "created_at": created_at,
                "expires_at": expires_at,
            }
        )

    return _make


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'keys.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def store(db_engine) -> KeyStore:
    return KeyStore(build_sessionmaker(db_engine))
