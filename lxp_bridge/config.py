"""Configuration file loading and queries."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

DEFAULT_MQTT_PORT = 1883
DEFAULT_MQTT_NAMESPACE = "lxp"
DEFAULT_HOMEASSISTANT_PREFIX = "homeassistant"
DEFAULT_LOGLEVEL = "debug"

_MISSING = object()


class ConfigError(ValueError):
    """Raised when the configuration cannot be read or is invalid."""


@dataclass
class Inverter:
    host: str
    port: int
    serial: str
    datalog: str
    enabled: bool = True
    heartbeats: bool = False
    publish_holdings_on_connect: bool = False


@dataclass
class HomeAssistant:
    enabled: bool = True
    prefix: str = DEFAULT_HOMEASSISTANT_PREFIX


@dataclass
class Mqtt:
    host: str
    enabled: bool = True
    port: int = DEFAULT_MQTT_PORT
    username: str | None = None
    password: str | None = None
    namespace: str = DEFAULT_MQTT_NAMESPACE
    homeassistant: HomeAssistant = field(default_factory=HomeAssistant)
    publish_individual_input: bool = False


@dataclass
class Influx:
    url: str
    database: str
    enabled: bool = True
    username: str | None = None
    password: str | None = None


@dataclass
class Database:
    url: str
    enabled: bool = True


@dataclass
class Crontab:
    cron: str
    enabled: bool = True


@dataclass
class Scheduler:
    timesync: Crontab
    enabled: bool = True


@dataclass
class Config:
    inverters: list[Inverter]
    mqtt: Mqtt
    influx: Influx
    databases: list[Database] = field(default_factory=list)
    scheduler: Scheduler | None = None
    loglevel: str = DEFAULT_LOGLEVEL


def _matches(value: Any, kind: type) -> bool:
    if kind is bool:
        return isinstance(value, bool)
    if kind is int:
        return isinstance(value, int) and not isinstance(value, bool)
    return isinstance(value, kind)


def _field(
    data: Mapping[str, Any],
    key: str,
    kind: type,
    where: str,
    *,
    default: Any = _MISSING,
    optional: bool = False,
) -> Any:
    if key not in data:
        if optional:
            return None
        if default is _MISSING:
            raise ConfigError(f"{where}: missing field `{key}`")
        return default
    value = data[key]
    if value is None and optional:
        return None
    if not _matches(value, kind):
        raise ConfigError(f"{where}: invalid value for `{key}`: {value!r}")
    return value


def _mapping(value: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigError(f"{where}: expected a mapping, got {value!r}")
    return value


def _port(data: Mapping[str, Any], where: str, default: Any = _MISSING) -> int:
    port = _field(data, "port", int, where, default=default)
    if not 0 <= port <= 0xFFFF:
        raise ConfigError(f"{where}: port out of range: {port}")
    return port


def _inverter(raw: Any) -> Inverter:
    where = "inverter"
    data = _mapping(raw, where)
    return Inverter(
        enabled=_field(data, "enabled", bool, where, default=True),
        host=_field(data, "host", str, where),
        port=_port(data, where),
        serial=_field(data, "serial", str, where),
        datalog=_field(data, "datalog", str, where),
        heartbeats=_field(data, "heartbeats", bool, where, optional=True) is True,
        publish_holdings_on_connect=_field(
            data, "publish_holdings_on_connect", bool, where, optional=True
        )
        is True,
    )


def _homeassistant(raw: Any) -> HomeAssistant:
    where = "mqtt.homeassistant"
    data = _mapping(raw, where)
    return HomeAssistant(
        enabled=_field(data, "enabled", bool, where, default=True),
        prefix=_field(data, "prefix", str, where, default=DEFAULT_HOMEASSISTANT_PREFIX),
    )


def _mqtt(raw: Any) -> Mqtt:
    where = "mqtt"
    data = _mapping(raw, where)
    homeassistant = (
        _homeassistant(data["homeassistant"]) if "homeassistant" in data else HomeAssistant()
    )
    return Mqtt(
        enabled=_field(data, "enabled", bool, where, default=True),
        host=_field(data, "host", str, where),
        port=_port(data, where, default=DEFAULT_MQTT_PORT),
        username=_field(data, "username", str, where, optional=True),
        password=_field(data, "password", str, where, optional=True),
        namespace=_field(data, "namespace", str, where, default=DEFAULT_MQTT_NAMESPACE),
        homeassistant=homeassistant,
        publish_individual_input=_field(
            data, "publish_individual_input", bool, where, optional=True
        )
        is True,
    )


def _influx(raw: Any) -> Influx:
    where = "influx"
    data = _mapping(raw, where)
    return Influx(
        enabled=_field(data, "enabled", bool, where, default=True),
        url=_field(data, "url", str, where),
        username=_field(data, "username", str, where, optional=True),
        password=_field(data, "password", str, where, optional=True),
        database=_field(data, "database", str, where),
    )


def _database(raw: Any) -> Database:
    where = "database"
    data = _mapping(raw, where)
    return Database(
        enabled=_field(data, "enabled", bool, where, default=True),
        url=_field(data, "url", str, where),
    )


def _crontab(raw: Any, where: str) -> Crontab:
    data = _mapping(raw, where)
    return Crontab(
        enabled=_field(data, "enabled", bool, where, default=True),
        cron=_field(data, "cron", str, where),
    )


def _scheduler(raw: Any) -> Scheduler:
    where = "scheduler"
    data = _mapping(raw, where)
    if "timesync" not in data:
        raise ConfigError(f"{where}: missing field `timesync`")
    return Scheduler(
        enabled=_field(data, "enabled", bool, where, default=True),
        timesync=_crontab(data["timesync"], "scheduler.timesync"),
    )


def parse_config(data: str | Mapping[str, Any]) -> Config:
    """Build a Config from YAML text or an already-loaded mapping."""
    if isinstance(data, str):
        try:
            data = yaml.safe_load(data)
        except yaml.YAMLError as err:
            raise ConfigError(f"invalid YAML: {err}") from err
    root = _mapping(data, "config")

    for key in ("inverters", "mqtt", "influx"):
        if key not in root:
            raise ConfigError(f"config: missing field `{key}`")

    inverters = root["inverters"]
    if not isinstance(inverters, list):
        raise ConfigError("config: `inverters` must be a list")
    databases = root.get("databases", [])
    if not isinstance(databases, list):
        raise ConfigError("config: `databases` must be a list")
    scheduler = root.get("scheduler")

    return Config(
        inverters=[_inverter(item) for item in inverters],
        mqtt=_mqtt(root["mqtt"]),
        influx=_influx(root["influx"]),
        databases=[_database(item) for item in databases],
        scheduler=None if scheduler is None else _scheduler(scheduler),
        loglevel=_field(root, "loglevel", str, "config", default=DEFAULT_LOGLEVEL),
    )


def load_config(path: str | Path) -> Config:
    """Read and parse the YAML configuration file at path."""
    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError as err:
        raise ConfigError(f"error reading {path}: {err}") from err
    return parse_config(content)


class ConfigWrapper:
    """Shared, mutable view of the configuration with convenience queries."""

    def __init__(self, config: Config) -> None:
        self.config = config

    @classmethod
    def from_file(cls, path: str | Path) -> ConfigWrapper:
        return cls(load_config(path))

    @property
    def inverters(self) -> list[Inverter]:
        return self.config.inverters

    @inverters.setter
    def inverters(self, new: list[Inverter]) -> None:
        self.config.inverters = new

    @property
    def mqtt(self) -> Mqtt:
        return self.config.mqtt

    @property
    def influx(self) -> Influx:
        return self.config.influx

    @property
    def databases(self) -> list[Database]:
        return self.config.databases

    @databases.setter
    def databases(self, new: list[Database]) -> None:
        self.config.databases = new

    @property
    def scheduler(self) -> Scheduler | None:
        return self.config.scheduler

    @property
    def loglevel(self) -> str:
        return self.config.loglevel

    def enabled_inverters(self) -> list[Inverter]:
        return [inverter for inverter in self.config.inverters if inverter.enabled]

    def inverter_with_host(self, host: str) -> Inverter | None:
        return next((i for i in self.config.inverters if i.host == host), None)

    def enabled_inverter_with_datalog(self, datalog: str) -> Inverter | None:
        return next((i for i in self.enabled_inverters() if i.datalog == datalog), None)

    def have_enabled_database(self) -> bool:
        return any(database.enabled for database in self.config.databases)

    def enabled_databases(self) -> list[Database]:
        return [database for database in self.config.databases if database.enabled]