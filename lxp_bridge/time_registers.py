"""Holding registers that store charge and discharge timeslots."""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass
from typing import Sequence

SLOTS = (1, 2, 3)


class ActionKind(enum.Enum):
    """A timeslot setting, with its topic name and the register of its first slot."""

    AC_CHARGE = ("ac_charge", 68)
    AC_FIRST = ("ac_first", 152)
    CHARGE_PRIORITY = ("charge_priority", 76)
    FORCED_DISCHARGE = ("forced_discharge", 84)

    @property
    def topic_name(self) -> str:
        return self.value[0]

    @property
    def first_register(self) -> int:
        return self.value[1]


@dataclass(frozen=True)
class Action:
    """One numbered timeslot of a setting; each slot spans two registers."""

    kind: ActionKind
    num: int

    def register(self) -> int:
        """The first of the two registers holding this slot."""
        if isinstance(self.num, bool) or self.num not in SLOTS:
            raise ValueError("unsupported command")
        return self.kind.first_register + 2 * (self.num - 1)

    def mqtt_reply_topic(self, datalog: str) -> str:
        return f"{datalog}/{self.kind.topic_name}/{self.num}"


def reply_payload(values: Sequence[int]) -> str:
    """JSON describing a slot from its four bytes: start hour/minute, end hour/minute."""
    if len(values) < 4:
        raise ValueError(f"need four time values, got {list(values)!r}")
    payload = {
        "start": f"{values[0]:02}:{values[1]:02}",
        "end": f"{values[2]:02}:{values[3]:02}",
    }
    return json.dumps(payload, separators=(",", ":"))