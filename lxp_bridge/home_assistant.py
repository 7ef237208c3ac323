"""Home Assistant MQTT discovery messages for an inverter."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from lxp_bridge.config import Inverter, Mqtt

MANUFACTURER = "LuxPower"

TIME_RANGE_PATTERN = r"([01]?[0-9]|2[0-3]):[0-5][0-9]-([01]?[0-9]|2[0-3]):[0-5][0-9]"
TIME_RANGE_COMMAND_TEMPLATE = (
    r'{% set parts = value.split("-") %}'
    r'{"start":"{{ parts[0] }}", "end":"{{ parts[1] }}"}'
)
TIME_RANGE_VALUE_TEMPLATE = r'{{ value_json["start"] }}-{{ value_json["end"] }}'

# Marks a sensor whose value template is derived from its key.
_DEFAULT_TEMPLATE = object()


@dataclass(frozen=True)
class Message:
    """An MQTT message to publish."""

    topic: str
    retain: bool
    payload: str


def _to_json(obj: dict[str, Any]) -> str:
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False)


_VOLTAGE = {"device_class": "voltage", "state_class": "measurement", "unit_of_measurement": "V"}
_FREQUENCY = {"device_class": "frequency", "state_class": "measurement", "unit_of_measurement": "Hz"}
_POWER = {"device_class": "power", "state_class": "measurement", "unit_of_measurement": "W"}
_ENERGY = {"device_class": "energy", "state_class": "total_increasing", "unit_of_measurement": "kWh"}
_TEMPERATURE = {
    "device_class": "temperature",
    "state_class": "measurement",
    "unit_of_measurement": "°C",
}

# (key, label, attributes); a "state_topic" attribute is a suffix after namespace/datalog.
_SENSORS: list[tuple[str, str, dict[str, Any]]] = [
    ("status", "Status", {"state_topic": "input/0/parsed", "value_template": None}),
    (
        "soc",
        "State of Charge",
        {"device_class": "battery", "state_class": "measurement", "unit_of_measurement": "%"},
    ),
    (
        "fault_code",
        "Fault Code",
        {
            "entity_category": "diagnostic",
            "state_topic": "input/fault_code/parsed",
            "value_template": None,
            "icon": "mdi:alert",
        },
    ),
    (
        "warning_code",
        "Warning Code",
        {
            "entity_category": "diagnostic",
            "state_topic": "input/warning_code/parsed",
            "value_template": None,
            "icon": "mdi:alert-outline",
        },
    ),
    ("v_bat", "Battery Voltage", _VOLTAGE),
    ("v_ac_r", "Grid Voltage", _VOLTAGE),
    ("v_pv_1", "PV Voltage (String 1)", _VOLTAGE),
    ("v_pv_2", "PV Voltage (String 2)", _VOLTAGE),
    ("v_pv_3", "PV Voltage (String 3)", _VOLTAGE),
    ("f_ac", "Grid Frequency", _FREQUENCY),
    ("f_eps", "EPS Frequency", _FREQUENCY),
    (
        "s_eps",
        "Apparent EPS Power",
        {**_POWER, "device_class": "apparent_power", "unit_of_measurement": "VA"},
    ),
    ("p_pv", "PV Power (Array)", _POWER),
    ("p_pv_1", "PV Power (String 1)", _POWER),
    ("p_pv_2", "PV Power (String 2)", _POWER),
    ("p_pv_3", "PV Power (String 3)", _POWER),
    ("p_battery", "Battery Power (discharge is negative)", _POWER),
    ("p_charge", "Battery Charge", _POWER),
    ("p_discharge", "Battery Discharge", _POWER),
    ("p_grid", "Grid Power (export is negative)", _POWER),
    ("p_to_user", "Power from Grid", _POWER),
    ("p_to_grid", "Power to Grid", _POWER),
    ("p_eps", "Active EPS Power", _POWER),
    ("p_inv", "Inverter Power", _POWER),
    ("p_rec", "AC Charge Power", _POWER),
    ("e_pv_all", "PV Generation (All time)", _ENERGY),
    ("e_pv_all_1", "PV Generation (All time) (String 1)", _ENERGY),
    ("e_pv_all_2", "PV Generation (All time) (String 2)", _ENERGY),
    ("e_pv_all_3", "PV Generation (All time) (String 3)", _ENERGY),
    ("e_pv_day", "PV Generation (Today))", _ENERGY),
    ("e_pv_day_1", "PV Generation (Today) (String 1)", _ENERGY),
    ("e_pv_day_2", "PV Generation (Today) (String 2)", _ENERGY),
    ("e_pv_day_3", "PV Generation (Today) (String 3)", _ENERGY),
    ("e_chg_all", "Battery Charge (All time)", _ENERGY),
    ("e_chg_day", "Battery Charge (Today)", _ENERGY),
    ("e_dischg_all", "Battery Discharge (All time)", _ENERGY),
    ("e_dischg_day", "Battery Discharge (Today)", _ENERGY),
    ("e_to_user_all", "Energy from Grid (All time)", _ENERGY),
    ("e_to_user_day", "Energy from Grid (Today)", _ENERGY),
    ("e_to_grid_all", "Energy to Grid (All time)", _ENERGY),
    ("e_to_grid_day", "Energy to Grid (Today)", _ENERGY),
    ("e_eps_all", "Energy from EPS (All time)", _ENERGY),
    ("e_eps_day", "Energy from EPS (Today)", _ENERGY),
    ("e_rec_all", "Energy of AC Charging (All time)", _ENERGY),
    ("e_rec_day", "Energy of AC Charging (Today)", _ENERGY),
    ("e_inv_all", "Energy of Inverter (All time)", _ENERGY),
    ("e_inv_day", "Energy of Inverter (Today)", _ENERGY),
    ("t_inner", "Inverter Temperature", _TEMPERATURE),
    ("t_rad_1", "Radiator 1 Temperature", _TEMPERATURE),
    ("t_rad_2", "Radiator 2 Temperature", _TEMPERATURE),
    (
        "runtime",
        "Total Runtime",
        {
            "entity_category": "diagnostic",
            "device_class": "duration",
            "state_class": "total_increasing",
            "unit_of_measurement": "s",
        },
    ),
]


class HomeAssistantConfig:
    """Builds the retained discovery messages describing one inverter."""

    def __init__(self, inverter: Inverter, mqtt_config: Mqtt) -> None:
        self.inverter = inverter
        self.mqtt_config = mqtt_config

    @property
    def _namespace(self) -> str:
        return self.mqtt_config.namespace

    @property
    def _datalog(self) -> str:
        return self.inverter.datalog

    def _device(self) -> dict[str, Any]:
        name = f"lxp_{self._datalog}"
        return {"manufacturer": MANUFACTURER, "name": name, "identifiers": [name]}

    def _availability(self) -> dict[str, Any]:
        return {"topic": f"{self._namespace}/LWT"}

    def _discovery_topic(self, kind: str, name: str) -> str:
        # "/" has meaning in MQTT topics, so names like ac_charge/1 are flattened
        return (
            f"{self.mqtt_config.homeassistant.prefix}/{kind}/lxp_{self._datalog}/"
            f"{name.replace('/', '_')}/config"
        )

    def _message(self, kind: str, name: str, config: dict[str, Any]) -> Message:
        return Message(
            topic=self._discovery_topic(kind, name),
            retain=True,
            payload=_to_json(config),
        )

    def sensors(self) -> list[Message]:
        """Discovery messages for every read-only sensor."""
        messages = []
        for key, label, attributes in _SENSORS:
            suffix = attributes.get("state_topic", "inputs/all")
            template = attributes.get("value_template", _DEFAULT_TEMPLATE)
            if template is _DEFAULT_TEMPLATE:
                template = f"{{{{ value_json.{key} }}}}"
            entity: dict[str, Any] = {
                "unique_id": f"lxp_{self._datalog}_{key}",
                "name": label,
                "state_topic": f"{self._namespace}/{self._datalog}/{suffix}",
            }
            optional = {
                "entity_category": attributes.get("entity_category"),
                "state_class": attributes.get("state_class"),
                "device_class": attributes.get("device_class"),
                "value_template": template,
                "unit_of_measurement": attributes.get("unit_of_measurement"),
                "icon": attributes.get("icon"),
            }
            entity.update((k, v) for k, v in optional.items() if v is not None)
            entity["device"] = self._device()
            entity["availability"] = self._availability()
            messages.append(self._message("sensor", key, entity))
        return messages

    def switch(self, name: str, label: str) -> Message:
        """Discovery message for a switch backed by a bit of holding register 21."""
        config = {
            "name": label,
            "state_topic": f"{self._namespace}/{self._datalog}/hold/21/bits",
            "command_topic": f"{self._namespace}/cmd/{self._datalog}/set/{name}",
            "value_template": f"{{{{ value_json.{name}_en }}}}",
            "unique_id": f"lxp_{self._datalog}_{name}",
            "device": self._device(),
            "availability": self._availability(),
        }
        return self._message("switch", name, config)

    def number_percent(self, register_name: str, register_number: int, label: str) -> Message:
        """Discovery message for a 0-100 % number held in one holding register."""
        config = {
            "name": label,
            "state_topic": f"{self._namespace}/{self._datalog}/hold/{register_number}",
            "command_topic": f"{self._namespace}/cmd/{self._datalog}/set/hold/{register_number}",
            "value_template": "{{ float(value) }}",
            "unique_id": f"lxp_{self._datalog}_number_{register_name}",
            "device": self._device(),
            "availability": self._availability(),
            "min": 0.0,
            "max": 100.0,
            "step": 1.0,
            "unit_of_measurement": "%",
        }
        return self._message("number", register_name, config)

    def time_range(self, name: str, label: str) -> Message:
        """Discovery message for a time range edited as text like 00:00-23:59."""
        config = {
            "name": label,
            "state_topic": f"{self._namespace}/{self._datalog}/{name}",
            "command_topic": f"{self._namespace}/cmd/{self._datalog}/set/{name}",
            "command_template": TIME_RANGE_COMMAND_TEMPLATE,
            "value_template": TIME_RANGE_VALUE_TEMPLATE,
            "unique_id": f"lxp_{self._datalog}_text_{name}",
            "device": self._device(),
            "availability": self._availability(),
            "pattern": TIME_RANGE_PATTERN,
        }
        return self._message("text", name, config)