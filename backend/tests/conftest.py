# Ensure backend is at sys.path[0] when pytest runs (from repo root or from backend dir)
import sys
from pathlib import Path

_tests_dir = Path(__file__).resolve().parent
_backend = _tests_dir.parent
_str_backend = str(_backend)
if sys.path[0:1] != [_str_backend]:
    sys.path.insert(0, _str_backend)

from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
import pytest_asyncio

from core.database import DatabaseManager


@pytest_asyncio.fixture
async def db_manager():
    """In-memory SQLite with every table created."""
    manager = DatabaseManager("sqlite+aiosqlite:///:memory:")
    await manager.init()
    await manager.create_schema()
    yield manager
    await manager.dispose()


@pytest.fixture
def make_crime_records() -> Callable[..., List[Dict[str, Any]]]:
    """Build police.uk-shaped records: ``counts`` maps category -> number of incidents."""

    def _make(counts: Dict[str, int], month: Optional[str] = "2024-01") -> List[Dict[str, Any]]:
        records: List[Dict[str, Any]] = []
        for category, count in counts.items():
            for _ in range(count):
                n = len(records)
                records.append(
                    {
                        "id": 1000 + n,
                        "category": category,
                        "month": month,
                        "location": {
                            "latitude": str(51.5 + n * 0.0001),
                            "longitude": str(-0.14 - n * 0.0001),
                        },
                    }
                )
        return records

    return _make


@pytest_asyncio.fixture
async def mock_http():
    """Factory for AsyncClients answering through httpx.MockTransport; closed after the test."""
    clients: List[httpx.AsyncClient] = []

    def _client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield _client
    for client in clients:
        await client.aclose()


def upstream_handler(
    *,
    centroid: Optional[Dict[str, float]] = None,
    geocode_status: int = 200,
    crimes: Optional[List[Dict[str, Any]]] = None,
    crime_status: int = 200,
    crime_headers: Optional[Dict[str, str]] = None,
    calls: Optional[List[str]] = None,
) -> Callable[[httpx.Request], httpx.Response]:
    """One MockTransport handler serving both postcodes.io and data.police.uk paths."""

    def _handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request.url.path)
        if request.url.path.startswith("/postcodes/"):
            if geocode_status != 200:
                return httpx.Response(geocode_status, json={"status": geocode_status, "error": "Postcode not found"})
            point = centroid or {"lat": 51.501, "lng": -0.141}
            return httpx.Response(
                200,
                json={"status": 200, "result": {"latitude": point["lat"], "longitude": point["lng"]}},
            )
        if request.url.path.endswith("/crimes-street/all-crime"):
            if crime_status != 200:
                return httpx.Response(crime_status, headers=crime_headers or {}, json=[])
            return httpx.Response(200, json=crimes or [])
        return httpx.Response(500, json={"error": "unexpected path"})

    return _handler


@pytest.fixture
def upstream() -> Callable[..., Callable[[httpx.Request], httpx.Response]]:
    return upstream_handler
