"""Pytest configuration and fixtures for imgcache.

Env is set before imgcache.main is imported so create_app() sees a valid
configuration. httpx's ASGITransport does not run the lifespan, so the
client fixture installs an optimizer built from test doubles on app.state.
"""

import os
import tempfile

os.environ.setdefault("ORIGIN_BACKEND", "http")
os.environ.setdefault("ORIGIN_BASE_URL", "http://origin.test")
os.environ.setdefault("STORAGE_BACKEND", "local")
os.environ.setdefault("STORAGE_ROOT", tempfile.mkdtemp(prefix="imgcache-test-"))
os.environ.setdefault("TELEMETRY_ENABLED", "false")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from imgcache.application.services.request_validator import (  # noqa: E402
    ImageRequestValidator,
)
from imgcache.application.use_cases.image_optimizer import (  # noqa: E402
    ImageOptimizerService,
)
from imgcache.core.config import get_settings  # noqa: E402
from imgcache.domain.entities import OriginAsset  # noqa: E402
from imgcache.domain.exceptions import UpstreamException  # noqa: E402
from imgcache.infrastructure.cache import DerivativeCache  # noqa: E402
from imgcache.infrastructure.external.codec import PillowImageCodec  # noqa: E402
from imgcache.infrastructure.external.storage.local_storage import (  # noqa: E402
    LocalStorageService,
)

get_settings.cache_clear()

from imgcache.main import app  # noqa: E402

# 2021-01-01T12:00:00Z
FIXED_NOW_MS = 1_609_502_400_000


class FakeClock:
    """Callable epoch-ms clock that tests can move forward."""

    def __init__(self, now: int = FIXED_NOW_MS) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds * 1000


class FakeOrigin:
    """In-memory origin: url -> OriginAsset; unknown urls answer 404."""

    def __init__(self) -> None:
        self.assets: dict[str, OriginAsset] = {}
        self.calls: list[str] = []

    def add(
        self,
        url: str,
        buffer: bytes,
        content_type: str | None,
        max_age: int = 120,
        status_code: int = 200,
    ) -> None:
        self.assets[url] = OriginAsset(
            buffer=buffer,
            content_type=content_type,
            status_code=status_code,
            max_age=max_age,
        )

    async def fetch(self, url: str) -> OriginAsset:
        self.calls.append(url)
        if url not in self.assets:
            raise UpstreamException(404, url, "not found")
        return self.assets[url]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def origin() -> FakeOrigin:
    return FakeOrigin()


@pytest.fixture
def storage(tmp_path) -> LocalStorageService:
    """Local derivative store under the test's tmp_path."""
    return LocalStorageService(str(tmp_path / "derivatives"))


@pytest.fixture
def derivative_cache(storage: LocalStorageService) -> DerivativeCache:
    return DerivativeCache(storage)


@pytest.fixture
def optimizer(
    derivative_cache: DerivativeCache,
    origin: FakeOrigin,
    clock: FakeClock,
) -> ImageOptimizerService:
    """Optimizer over a tmp_path store, the fake origin and the real Pillow codec."""
    settings = get_settings()
    return ImageOptimizerService(
        cache=derivative_cache,
        origin=origin,
        codec=PillowImageCodec(),
        validator=ImageRequestValidator(
            settings.allowed_widths, settings.overwrite_types
        ),
        cache_version=settings.cache_version,
        clock=clock,
    )


@pytest.fixture
async def client(optimizer: ImageOptimizerService) -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI)."""
    app.state.image_optimizer = optimizer
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
