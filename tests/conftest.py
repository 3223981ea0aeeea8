"""
Pytest configuration and shared fixtures.

- Cliente HTTP de prueba (FastAPI TestClient) sobre el modo in-memory
- Settings sobreescribibles por test
- Cliente ETG sin esperas entre reintentos
"""

from typing import Generator

import pytest
from fastapi.testclient import TestClient

from app.api.dependencies import in_memory_bundle
from app.config import Settings, get_settings
from app.infrastructure.gateways.etg_client import EtgClient, EtgCredentials
from app.main import app

ETG_BASE_URL = "https://etg.test"


async def no_sleep(_seconds: float) -> None:
    return None


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, use_in_memory=True)


@pytest.fixture
def client(settings: Settings) -> Generator[TestClient, None, None]:
    """
    FastAPI TestClient en modo in-memory con estado limpio por test.
    """
    in_memory_bundle.cache_clear()
    app.dependency_overrides[get_settings] = lambda: settings

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    in_memory_bundle.cache_clear()


@pytest.fixture
def reservation_repo(client: TestClient):
    return in_memory_bundle()["reservation_repo"]


@pytest.fixture
def etg_client() -> EtgClient:
    return EtgClient(
        credentials=EtgCredentials(key_id="1234", api_key="secret"),
        base_url=ETG_BASE_URL,
        timeout_seconds=5,
        max_retries=3,
        retry_base_ms=10,
        sleep=no_sleep,
    )
