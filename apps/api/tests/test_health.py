import pytest
from httpx import ASGITransport, AsyncClient

from signaling_relay.main import app


@pytest.mark.asyncio
async def test_health_endpoint() -> None:
    transport = ASGITransport(app=app)

    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        response = await client.get("/api/health")
        head = await client.head("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["timestamp"].endswith("Z")
    assert head.status_code == 200


@pytest.mark.asyncio
async def test_unmatched_route_returns_json_404() -> None:
    transport = ASGITransport(app=app)

    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        response = await client.get("/api/nope")

    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}
