# tests/conftest.py
import httpx
import pytest
from fastapi.testclient import TestClient

from printshop.api.deps import get_http_client, get_inflight
from printshop.main import app
from printshop.services.inflight import InFlightRegistry

from tests.factories import BASE_URL, FakeOrdersApi


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def upstream() -> FakeOrdersApi:
    return FakeOrdersApi()


@pytest.fixture()
def inflight() -> InFlightRegistry:
    return InFlightRegistry()


@pytest.fixture()
def app_overrides(upstream, inflight):
    """
    Route the console's upstream calls to the in-memory Orders API and give
    every test its own in-flight registry.
    """

    async def _http():
        async with httpx.AsyncClient(transport=upstream.transport(), base_url=BASE_URL) as c:
            yield c

    app.dependency_overrides[get_http_client] = _http
    app.dependency_overrides[get_inflight] = lambda: inflight
    try:
        yield app
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def client(app_overrides):
    with TestClient(app_overrides) as c:
        yield c
