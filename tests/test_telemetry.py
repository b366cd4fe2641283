import json

import httpx
import pytest

from lantern.hacking.models import Station
from lantern.hacking.signal_engine import SignalConfig, SignalEngine
from lantern.hacking.telemetry import BoostNotifier


def _recording_client(requests, status_code=200):
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(status_code)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_send_boost_posts_report():
    requests = []
    client = _recording_client(requests)
    notifier = BoostNotifier(host="hacking.example", api_key="k3y", client=client)

    status = await notifier.send_boost(5, 110)

    assert status == 200
    assert str(requests[0].url) == "http://hacking.example/reports/set_boost"
    assert json.loads(requests[0].content) == {"data": {"station": 5, "boost": 110, "key": "k3y"}}
    await client.aclose()


@pytest.mark.asyncio
async def test_send_boost_swallows_connection_errors():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    notifier = BoostNotifier(host="hacking.example", api_key="k3y", client=client)

    assert await notifier.send_boost(5, 110) is None
    await client.aclose()


def test_disabled_without_host():
    notifier = BoostNotifier(host="")
    assert not notifier.enabled
    assert notifier.notify_boost(5, 110) is None


@pytest.mark.asyncio
async def test_engine_reports_after_persisting(services):
    requests = []
    client = _recording_client(requests, status_code=500)
    notifier = BoostNotifier(host="hacking.example", api_key="k3y", client=client)
    engine = SignalEngine(services.stations, notifier, SignalConfig())
    await services.stations.create_station(Station(5, "Hill", True, 100))

    assert await engine.apply(5, boosting=False) == 90
    await notifier.drain()

    assert (await services.stations.get_station(5)).signal_value == 90
    assert json.loads(requests[0].content)["data"]["boost"] == 90
    await client.aclose()


@pytest.mark.asyncio
async def test_send_boost_swallows_malformed_host():
    requests = []
    client = _recording_client(requests)
    notifier = BoostNotifier(host="hacking.example:notaport", api_key="k3y", client=client)

    task = notifier.notify_boost(5, 110)
    await notifier.drain()

    assert task.result() is None
    assert requests == []
    await client.aclose()
