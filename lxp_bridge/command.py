"""Commands that can be sent to an inverter, and their result topics."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

from lxp_bridge.config import Inverter


class _Arg(enum.Enum):
    NONE = "none"
    U16 = "u16"
    BOOL = "bool"
    TIMES = "times"


class CommandKind(enum.Enum):
    """Every command kind, with its result sub-topic and the argument it carries."""

    READ_INPUTS = ("read/inputs/{}", _Arg.NONE)
    READ_INPUT = ("read/input/{}", _Arg.U16)
    READ_HOLD = ("read/hold/{}", _Arg.U16)
    READ_PARAM = ("read/param/{}", _Arg.NONE)
    READ_AC_CHARGE_TIME = ("read/ac_charge/{}", _Arg.NONE)
    READ_AC_FIRST_TIME = ("read/ac_first/{}", _Arg.NONE)
    READ_CHARGE_PRIORITY_TIME = ("read/charge_priority/{}", _Arg.NONE)
    READ_FORCED_DISCHARGE_TIME = ("read/forced_discharge/{}", _Arg.NONE)
    SET_HOLD = ("set/hold/{}", _Arg.U16)
    WRITE_PARAM = ("set/param/{}", _Arg.U16)
    SET_AC_CHARGE_TIME = ("set/ac_charge/{}", _Arg.TIMES)
    SET_AC_FIRST_TIME = ("set/ac_first/{}", _Arg.TIMES)
    SET_CHARGE_PRIORITY_TIME = ("set/charge_priority/{}", _Arg.TIMES)
    SET_FORCED_DISCHARGE_TIME = ("set/forced_discharge/{}", _Arg.TIMES)
    CHARGE_RATE = ("set/charge_rate_pct", _Arg.U16)
    DISCHARGE_RATE = ("set/discharge_rate_pct", _Arg.U16)
    AC_CHARGE = ("set/ac_charge", _Arg.BOOL)
    CHARGE_PRIORITY = ("set/charge_priority", _Arg.BOOL)
    FORCED_DISCHARGE = ("set/forced_discharge", _Arg.BOOL)
    AC_CHARGE_RATE = ("set/ac_charge_rate_pct", _Arg.U16)
    AC_CHARGE_SOC_LIMIT = ("set/ac_charge_soc_limit_pct", _Arg.U16)
    DISCHARGE_CUTOFF_SOC_LIMIT = ("set/discharge_cutoff_soc_limit_pct", _Arg.U16)

    @property
    def path(self) -> str:
        return self.value[0]

    @property
    def takes_number(self) -> bool:
        return "{}" in self.path

    @property
    def _arg(self) -> _Arg:
        return self.value[1]


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class Command:
    """A command for one inverter.

    ``number`` is the register or timeslot the command addresses, when its kind
    has one; ``value`` is the count, new value, flag or four time bytes it carries.
    """

    kind: CommandKind
    inverter: Inverter
    number: int | None = None
    value: Any = None

    def __post_init__(self) -> None:
        if self.kind.takes_number:
            if not _is_int(self.number) or not -0x8000 <= self.number <= 0x7FFF:
                raise ValueError(f"{self.kind.name} needs a register or slot number")
        elif self.number is not None:
            raise ValueError(f"{self.kind.name} takes no number")

        arg = self.kind._arg
        value = self.value
        if arg is _Arg.NONE:
            valid = value is None
        elif arg is _Arg.U16:
            valid = _is_int(value) and 0 <= value <= 0xFFFF
        elif arg is _Arg.BOOL:
            valid = isinstance(value, bool)
        else:
            valid = (
                isinstance(value, (tuple, list))
                and len(value) == 4
                and all(_is_int(v) and 0 <= v <= 0xFF for v in value)
            )
            if valid:
                object.__setattr__(self, "value", tuple(value))
        if not valid:
            raise ValueError(f"invalid value for {self.kind.name}: {value!r}")

    def to_result_topic(self) -> str:
        """The topic the result of this command is published on."""
        rest = self.kind.path.format(self.number)
        return f"result/{self.inverter.datalog}/{rest}"