"""Storing complete sets of inverter inputs in an SQL database."""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Any, Mapping

import sqlalchemy
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from lxp_bridge.channels import ChannelClosed, Channels
from lxp_bridge.config import Database as DatabaseConfig

TABLE = "inputs"
RETRY_DELAY_SECONDS = 10

log = logging.getLogger(__name__)

COLUMNS: tuple[str, ...] = (
    "status",
    "v_pv_1", "v_pv_2", "v_pv_3", "v_bat",
    "soc", "soh",
    "internal_fault",
    "p_pv", "p_pv_1", "p_pv_2", "p_pv_3",
    "p_battery", "p_charge", "p_discharge",
    "v_ac_r", "v_ac_s", "v_ac_t", "f_ac",
    "p_inv", "p_rec",
    "pf",
    "v_eps_r", "v_eps_s", "v_eps_t", "f_eps", "p_eps", "s_eps",
    "p_grid", "p_to_grid", "p_to_user",
    "e_pv_day", "e_pv_day_1", "e_pv_day_2", "e_pv_day_3",
    "e_inv_day", "e_rec_day", "e_chg_day", "e_dischg_day",
    "e_eps_day", "e_to_grid_day", "e_to_user_day",
    "v_bus_1", "v_bus_2",
    "e_pv_all", "e_pv_all_1", "e_pv_all_2", "e_pv_all_3",
    "e_inv_all", "e_rec_all", "e_chg_all", "e_dischg_all",
    "e_eps_all", "e_to_grid_all", "e_to_user_all",
    "fault_code", "warning_code",
    "t_inner", "t_rad_1", "t_rad_2", "t_bat",
    "runtime",
    "max_chg_curr", "max_dischg_curr", "charge_volt_ref", "dischg_cut_volt",
    "bat_status_0", "bat_status_1", "bat_status_2", "bat_status_3", "bat_status_4",
    "bat_status_5", "bat_status_6", "bat_status_7", "bat_status_8", "bat_status_9",
    "bat_status_inv",
    "bat_count", "bat_capacity", "bat_current", "bms_event_1", "bms_event_2",
    "max_cell_voltage", "min_cell_voltage", "max_cell_temp", "min_cell_temp",
    "bms_fw_update_state", "cycle_count", "vbat_inv",
    "datalog", "created_at",
)

# columns whose value comes from a differently named input field
_FIELD_FOR_COLUMN = {"created_at": "time"}
_INTEGER_COLUMNS = frozenset(
    {"soc", "soh", "internal_fault", "fault_code", "warning_code", "runtime"}
)


class DatabaseType(enum.Enum):
    MYSQL = "mysql"
    POSTGRES = "postgres"
    SQLITE = "sqlite"


@dataclass(frozen=True)
class ReadInputAll:
    """A complete set of input register values to store, keyed by field name."""

    data: Mapping[str, Any]


@dataclass(frozen=True)
class Shutdown:
    """Tells the database loop to exit."""


def database_type(url: str) -> DatabaseType:
    """The kind of database a connection URL points at."""
    prefix = url.split(":", 1)[0]
    try:
        return DatabaseType(prefix)
    except ValueError:
        raise ValueError(f"unsupported database {url}") from None


def insert_query(kind: DatabaseType) -> str:
    """The raw INSERT statement, with the placeholder style of the given database."""
    if kind is DatabaseType.MYSQL:
        placeholders = ", ".join("?" for _ in COLUMNS)
    else:
        placeholders = ", ".join(f"${n}" for n in range(1, len(COLUMNS) + 1))
    return f"INSERT INTO {TABLE} ({', '.join(COLUMNS)}) VALUES ({placeholders})"


def row_values(data: Mapping[str, Any]) -> tuple[Any, ...]:
    """The values to insert for one set of inputs, in column order.

    Raises KeyError if a field is missing.
    """
    values = []
    for column in COLUMNS:
        value = data[_FIELD_FOR_COLUMN.get(column, column)]
        if column == "datalog":
            value = str(value)
        elif column in _INTEGER_COLUMNS:
            value = int(value)
        values.append(value)
    return tuple(values)


def _sqlalchemy_url(url: str, kind: DatabaseType) -> str:
    scheme, rest = url.split(":", 1)
    if kind is DatabaseType.SQLITE:
        path = rest[2:] if rest.startswith("//") else rest
        path = path.split("?", 1)[0]
        if path in ("", ":memory:"):
            return "sqlite://"
        return f"sqlite:///{path}"
    if kind is DatabaseType.POSTGRES:
        return f"postgresql:{rest}"
    return f"{scheme}:{rest}"


class Database:
    """Receives complete input sets from its channel and inserts them as rows."""

    def __init__(self, config: DatabaseConfig, channels: Channels) -> None:
        self._config = config
        self._channels = channels
        self._engine: Engine | None = None
        self._table = sqlalchemy.table(TABLE, *(sqlalchemy.column(c) for c in COLUMNS))

    async def start(self) -> None:
        """Connect and insert every received input set until Shutdown arrives."""
        log.info("initializing database")
        kind = database_type(self._config.url)
        receiver = self._channels.to_database.subscribe()
        self._engine = await asyncio.to_thread(self._connect, kind)
        log.info("database connected")
        try:
            while True:
                item = await receiver.recv()
                if isinstance(item, Shutdown):
                    break
                if not isinstance(item, ReadInputAll):
                    continue
                while True:
                    try:
                        await self.insert(item.data)
                        break
                    except SQLAlchemyError as err:
                        log.error(
                            "INSERT failed: %r - retrying in %ss", err, RETRY_DELAY_SECONDS
                        )
                        await asyncio.sleep(RETRY_DELAY_SECONDS)
        finally:
            engine, self._engine = self._engine, None
            if engine is not None:
                engine.dispose()
        log.info("database loop exiting")

    def stop(self) -> None:
        try:
            self._channels.to_database.send(Shutdown())
        except ChannelClosed:
            pass

    async def insert(self, data: Mapping[str, Any]) -> None:
        """Insert one set of inputs as a row of the inputs table."""
        if self._engine is None:
            raise RuntimeError("database not connected")
        statement = self._table.insert().values(**dict(zip(COLUMNS, row_values(data))))
        await asyncio.to_thread(self._execute, statement)

    def _connect(self, kind: DatabaseType) -> Engine:
        connect_args = {"check_same_thread": False} if kind is DatabaseType.SQLITE else {}
        engine = sqlalchemy.create_engine(
            _sqlalchemy_url(self._config.url, kind), connect_args=connect_args
        )
        with engine.connect():
            pass
        return engine

    def _execute(self, statement: Any) -> None:
        assert self._engine is not None
        with self._engine.begin() as connection:
            connection.execute(statement)