from datetime import datetime, timedelta, timezone

import pytest

from lxp_bridge.timesync import (
    SYNC_LIMIT,
    inverter_datetime,
    local_now,
    needs_sync,
    set_time_values,
)


def test_inverter_datetime():
    assert inverter_datetime([23, 5, 6, 7, 8, 9]) == datetime(
        2023, 5, 6, 7, 8, 9, tzinfo=timezone.utc
    )


@pytest.mark.parametrize(
    "values", [[23, 5, 6, 7, 8, 9], [0, 1, 1, 0, 0, 0], [99, 12, 31, 23, 59, 59]]
)
def test_round_trip(values):
    assert set_time_values(inverter_datetime(values)) == values


def test_inverter_datetime_ignores_extra_values():
    assert inverter_datetime([23, 5, 6, 7, 8, 9, 42]) == inverter_datetime([23, 5, 6, 7, 8, 9])


def test_inverter_datetime_too_short():
    with pytest.raises(ValueError):
        inverter_datetime([23, 5, 6])


def test_inverter_datetime_invalid_month():
    with pytest.raises(ValueError):
        inverter_datetime([23, 13, 1, 0, 0, 0])


def test_needs_sync_boundaries():
    base = datetime(2023, 5, 6, 12, 0, 0, tzinfo=timezone.utc)
    second = timedelta(seconds=1)
    assert needs_sync(base, base) is False
    assert needs_sync(base + SYNC_LIMIT, base) is False
    assert needs_sync(base - SYNC_LIMIT, base) is False
    assert needs_sync(base + SYNC_LIMIT + second, base) is True
    assert needs_sync(base, base + SYNC_LIMIT + second) is True


def test_set_time_values_rejects_old_year():
    with pytest.raises(ValueError):
        set_time_values(datetime(1999, 12, 31, tzinfo=timezone.utc))


def test_local_now_is_utc_shifted_by_local_offset():
    result = local_now()
    reference = datetime.now(timezone.utc)
    offset = reference.astimezone().utcoffset()
    assert result.tzinfo == timezone.utc
    assert abs((result - reference) - offset) < timedelta(seconds=5)