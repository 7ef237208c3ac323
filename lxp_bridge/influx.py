"""Pushing parsed inverter inputs to InfluxDB."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Mapping

import httpx

from lxp_bridge.channels import Channels, ChannelClosed
from lxp_bridge.config import ConfigWrapper

INPUTS_MEASUREMENT = "inputs"
RETRY_DELAY_SECONDS = 10

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class InputData:
    """A complete set of input register values, keyed by field name."""

    data: Mapping[str, Any]


@dataclass(frozen=True)
class Shutdown:
    """Tells the influx loop to exit."""


def _escape(text: str, specials: str) -> str:
    text = text.replace("\\", "\\\\")
    for char in specials:
        text = text.replace(char, "\\" + char)
    return text


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def build_line(data: Mapping[str, Any], measurement: str = INPUTS_MEASUREMENT) -> str:
    """Render one line of InfluxDB line protocol from a set of input values.

    ``time`` becomes the timestamp (seconds, written as nanoseconds), ``datalog``
    a tag, floats float fields and integers integer fields.
    """
    tags: list[str] = []
    fields: list[str] = []
    timestamp: int | None = None

    for key in sorted(data):
        value = data[key]
        if key == "time":
            if not _is_int(value):
                raise ValueError(f"cannot represent {value!r} as i64 for {key}")
            timestamp = value * 1_000_000_000
        elif key == "datalog":
            if not isinstance(value, str):
                raise ValueError(f"cannot represent {value!r} as str for {key}")
            tags.append(f"{_escape(key, ',= ')}={_escape(value, ',= ')}")
        elif isinstance(value, float):
            fields.append(f"{_escape(key, ',= ')}={value!r}")
        elif _is_int(value):
            fields.append(f"{_escape(key, ',= ')}={value}i")
        else:
            raise ValueError(f"cannot represent {value!r} as i64 for {key}")

    if not fields:
        raise ValueError("a line needs at least one field")

    head = ",".join([_escape(measurement, ", "), *tags])
    line = f"{head} {','.join(fields)}"
    if timestamp is not None:
        line += f" {timestamp}"
    return line


class Influx:
    """Receives input data from its channel and writes it to InfluxDB."""

    def __init__(
        self,
        config: ConfigWrapper,
        channels: Channels,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._channels = channels
        self._client = client

    async def start(self) -> None:
        """Run until a Shutdown message arrives; returns at once if disabled."""
        settings = self._config.influx
        if not settings.enabled:
            log.info("influx disabled, skipping")
            return

        log.info("initializing influx at %s", settings.url)

        url = httpx.URL(settings.url)
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError(f"invalid influx url {settings.url}")

        receiver = self._channels.to_influx.subscribe()

        if self._client is not None:
            await self._sender(receiver, self._client)
        else:
            async with httpx.AsyncClient() as client:
                await self._sender(receiver, client)

        log.info("influx loop exiting")

    def stop(self) -> None:
        try:
            self._channels.to_influx.send(Shutdown())
        except ChannelClosed:
            pass

    async def _sender(self, receiver: Any, client: httpx.AsyncClient) -> None:
        while True:
            item = await receiver.recv()
            if isinstance(item, Shutdown):
                break
            if not isinstance(item, InputData):
                continue
            lines = [build_line(item.data)]
            while True:
                try:
                    await self._write(client, lines)
                    break
                except httpx.HTTPError as err:
                    log.error("push failed: %r - retrying in %ss", err, RETRY_DELAY_SECONDS)
                    await asyncio.sleep(RETRY_DELAY_SECONDS)

        log.info("sender loop exiting")

    async def _write(self, client: httpx.AsyncClient, lines: list[str]) -> None:
        settings = self._config.influx
        auth = None
        if settings.username is not None and settings.password is not None:
            auth = (settings.username, settings.password)
        endpoint = f"{settings.url.rstrip('/')}/write"
        kwargs: dict[str, Any] = {
            "params": {"db": settings.database},
            "content": "\n".join(lines).encode("utf-8"),
        }
        if auth is not None:
            kwargs["auth"] = auth
        response = await client.post(endpoint, **kwargs)
        response.raise_for_status()