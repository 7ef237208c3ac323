import asyncio

import httpx
import pytest

from lxp_bridge.channels import Channels
from lxp_bridge.config import ConfigWrapper, parse_config
from lxp_bridge.influx import Influx, InputData, Shutdown, build_line

CONFIG = """
inverters: []
mqtt:
  host: localhost
influx:
  url: http://localhost:8086
  database: lxp
  username: user
  password: password
"""


def test_build_line_tag_fields_and_timestamp():
    line = build_line({"time": 1700000000, "datalog": "TESTLOG001", "soc": 50, "v_bat": 52.5})
    assert line == "inputs,datalog=TESTLOG001 soc=50i,v_bat=52.5 1700000000000000000"


def test_build_line_without_time_has_no_timestamp():
    line = build_line({"soc": 50}, measurement="custom")
    assert line == "custom soc=50i"


def test_build_line_fields_sorted():
    line = build_line({"z": 1, "a": 2})
    fields = line.split(" ")[1].split(",")
    assert fields == sorted(fields)


def test_build_line_escapes_tag_value():
    line = build_line({"datalog": "A B,C", "soc": 1})
    assert line.startswith("inputs,datalog=A\\ B\\,C ")


@pytest.mark.parametrize(
    "data",
    [
        {"time": 1.5, "soc": 1},
        {"datalog": 5, "soc": 1},
        {"soc": True},
        {"soc": "high"},
        {"time": 1},
    ],
)
def test_build_line_rejects_bad_values(data):
    with pytest.raises(ValueError):
        build_line(data)


@pytest.mark.asyncio
async def test_disabled_influx_returns_immediately():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(204)

    config = parse_config(CONFIG.replace("influx:\n", "influx:\n  enabled: false\n"))
    channels = Channels()
    receiver = channels.to_influx.subscribe()
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        influx = Influx(ConfigWrapper(config), channels, client)
        result = await asyncio.wait_for(influx.start(), timeout=1)
        channels.to_influx.send(InputData({"soc": 1}))
        await asyncio.sleep(0)

    assert result is None
    assert requests == []
    assert await receiver.recv() == InputData({"soc": 1})


@pytest.mark.asyncio
async def test_sends_lines_until_shutdown():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(204)

    channels = Channels()
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        influx = Influx(ConfigWrapper(parse_config(CONFIG)), channels, client)
        task = asyncio.create_task(influx.start())
        await asyncio.sleep(0)
        data = {"time": 1700000000, "datalog": "TESTLOG001", "soc": 50}
        channels.to_influx.send(InputData(data))
        influx.stop()
        await asyncio.wait_for(task, timeout=1)

    assert len(requests) == 1
    request = requests[0]
    assert request.method == "POST"
    assert request.url.path == "/write"
    assert request.url.params["db"] == "lxp"
    assert request.content.decode() == build_line(data)
    assert request.headers["authorization"].startswith("Basic ")


@pytest.mark.asyncio
async def test_stop_broadcasts_shutdown():
    channels = Channels()
    receiver = channels.to_influx.subscribe()
    Influx(ConfigWrapper(parse_config(CONFIG)), channels, None).stop()
    assert await receiver.recv() == Shutdown()


@pytest.mark.asyncio
async def test_invalid_url_raises():
    config = parse_config(CONFIG.replace("http://localhost:8086", "not a url"))
    influx = Influx(ConfigWrapper(config), Channels(), None)
    with pytest.raises(ValueError):
        await influx.start()