import json

import pytest

from lxp_bridge.time_registers import Action, ActionKind, reply_payload


@pytest.mark.parametrize(
    "kind,registers",
    [
        (ActionKind.AC_CHARGE, (68, 70, 72)),
        (ActionKind.AC_FIRST, (152, 154, 156)),
        (ActionKind.CHARGE_PRIORITY, (76, 78, 80)),
        (ActionKind.FORCED_DISCHARGE, (84, 86, 88)),
    ],
)
def test_registers(kind, registers):
    assert tuple(Action(kind, num).register() for num in (1, 2, 3)) == registers


@pytest.mark.parametrize("num", [0, 4, -1, True])
def test_unsupported_slot(num):
    with pytest.raises(ValueError, match="unsupported command"):
        Action(ActionKind.AC_CHARGE, num).register()


@pytest.mark.parametrize(
    "kind,name",
    [
        (ActionKind.AC_CHARGE, "ac_charge"),
        (ActionKind.AC_FIRST, "ac_first"),
        (ActionKind.CHARGE_PRIORITY, "charge_priority"),
        (ActionKind.FORCED_DISCHARGE, "forced_discharge"),
    ],
)
def test_reply_topic(kind, name):
    assert Action(kind, 2).mqtt_reply_topic("TESTDL0001") == f"TESTDL0001/{name}/2"


def test_reply_payload_exact():
    assert reply_payload([1, 2, 3, 4]) == '{"start":"01:02","end":"03:04"}'


def test_reply_payload_round_trip():
    payload = json.loads(reply_payload([23, 59, 0, 30, 99]))
    start_hour, start_minute = (int(p) for p in payload["start"].split(":"))
    end_hour, end_minute = (int(p) for p in payload["end"].split(":"))
    assert (start_hour, start_minute, end_hour, end_minute) == (23, 59, 0, 30)
    assert set(payload) == {"start", "end"}


def test_reply_payload_too_short():
    with pytest.raises(ValueError):
        reply_payload([1, 2, 3])