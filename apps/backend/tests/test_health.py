import httpx

from jobos.health import check_database, check_openrouter

MODELS_URL = "https://openrouter.ai/api/v1/models"


async def test_database_is_connected(db):
    health = await check_database(db)

    assert health.status == "connected"
    assert health.latency_ms is not None


async def test_openrouter_listing_ok():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"data": []}))

    health = await check_openrouter(MODELS_URL, transport=transport)

    assert health.status == "connected"


async def test_openrouter_bad_status_is_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(503))

    health = await check_openrouter(MODELS_URL, transport=transport)

    assert health.status == "error"
    assert health.error == "HTTP 503"


async def test_openrouter_transport_failure_is_error():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    health = await check_openrouter(MODELS_URL, transport=httpx.MockTransport(refuse))

    assert health.status == "error"
    assert "connection refused" in health.error
