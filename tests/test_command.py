import pytest

from lxp_bridge.command import Command, CommandKind
from lxp_bridge.config import Inverter

INVERTER = Inverter(host="192.0.2.10", port=8000, serial="TESTSER001", datalog="TESTLOG001")


@pytest.mark.parametrize(
    "kind, number, value, suffix",
    [
        (CommandKind.READ_INPUTS, 1, None, "read/inputs/1"),
        (CommandKind.READ_INPUT, 5, 1, "read/input/5"),
        (CommandKind.READ_HOLD, 21, 1, "read/hold/21"),
        (CommandKind.READ_PARAM, 7, None, "read/param/7"),
        (CommandKind.READ_AC_CHARGE_TIME, 2, None, "read/ac_charge/2"),
        (CommandKind.READ_AC_FIRST_TIME, 3, None, "read/ac_first/3"),
        (CommandKind.READ_CHARGE_PRIORITY_TIME, 1, None, "read/charge_priority/1"),
        (CommandKind.READ_FORCED_DISCHARGE_TIME, 1, None, "read/forced_discharge/1"),
        (CommandKind.SET_HOLD, 66, 50, "set/hold/66"),
        (CommandKind.WRITE_PARAM, 9, 0, "set/param/9"),
        (CommandKind.SET_AC_CHARGE_TIME, 1, (0, 30, 6, 0), "set/ac_charge/1"),
        (CommandKind.SET_AC_FIRST_TIME, 1, (0, 30, 6, 0), "set/ac_first/1"),
        (CommandKind.SET_CHARGE_PRIORITY_TIME, 2, (0, 0, 1, 0), "set/charge_priority/2"),
        (CommandKind.SET_FORCED_DISCHARGE_TIME, 3, (1, 0, 2, 0), "set/forced_discharge/3"),
        (CommandKind.AC_CHARGE, None, True, "set/ac_charge"),
        (CommandKind.CHARGE_PRIORITY, None, False, "set/charge_priority"),
        (CommandKind.FORCED_DISCHARGE, None, True, "set/forced_discharge"),
        (CommandKind.CHARGE_RATE, None, 80, "set/charge_rate_pct"),
        (CommandKind.DISCHARGE_RATE, None, 80, "set/discharge_rate_pct"),
        (CommandKind.AC_CHARGE_RATE, None, 80, "set/ac_charge_rate_pct"),
        (CommandKind.AC_CHARGE_SOC_LIMIT, None, 90, "set/ac_charge_soc_limit_pct"),
        (
            CommandKind.DISCHARGE_CUTOFF_SOC_LIMIT,
            None,
            20,
            "set/discharge_cutoff_soc_limit_pct",
        ),
    ],
)
def test_result_topic(kind, number, value, suffix):
    command = Command(kind, INVERTER, number, value)
    assert command.to_result_topic() == f"result/TESTLOG001/{suffix}"


def test_time_values_stored_as_tuple():
    command = Command(CommandKind.SET_AC_CHARGE_TIME, INVERTER, 1, [0, 30, 6, 0])
    assert command.value == (0, 30, 6, 0)


@pytest.mark.parametrize(
    "kind, number, value",
    [
        (CommandKind.READ_HOLD, None, 1),
        (CommandKind.READ_HOLD, 21, -1),
        (CommandKind.READ_HOLD, 21, 70000),
        (CommandKind.READ_PARAM, 7, 3),
        (CommandKind.AC_CHARGE, None, 1),
        (CommandKind.AC_CHARGE, 21, True),
        (CommandKind.SET_AC_CHARGE_TIME, 1, (0, 30, 6)),
        (CommandKind.SET_AC_CHARGE_TIME, 1, (0, 30, 6, 256)),
        (CommandKind.CHARGE_RATE, None, True),
        (CommandKind.READ_INPUTS, True, None),
    ],
)
def test_invalid_commands(kind, number, value):
    with pytest.raises(ValueError):
        Command(kind, INVERTER, number, value)