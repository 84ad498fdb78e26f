import os

import psutil
import pytest

from procsuite.top_picker import command_name, format_time_plus, pickers, status_letter

MISSING_PID = 999_999_999


def _time_plus_parts(value: str) -> tuple:
    hours, rest = value.split(":")
    minutes, seconds = rest.split(".")
    return hours, minutes, seconds


def test_time_plus_zero():
    assert format_time_plus(0) == "0:00.00"


def test_time_plus_pinned():
    assert format_time_plus(3661) == "1:01.01"


@pytest.mark.parametrize(
    "seconds,expected",
    [(59, "0:00.59"), (60, "0:01.00"), (3599, "0:59.59"), (86405, "24:00.05")],
)
def test_time_plus_shape(seconds, expected):
    assert format_time_plus(seconds) == expected


def test_status_letters():
    assert status_letter(psutil.STATUS_RUNNING) == "R"
    assert status_letter(psutil.STATUS_ZOMBIE) == "Z"


def test_status_letter_always_single_upper():
    for status in ("running", "sleeping", "stopped", "idle", "something-else"):
        letter = status_letter(status)
        assert len(letter) == 1 and letter.isupper()


def test_pickers_one_per_field():
    fields = ["PID", "USER", "NI", "VIRT", "COMMAND"]
    assert len(pickers(fields)) == len(fields)


def test_pid_picker():
    assert pickers(["PID"])[0](os.getpid()) == str(os.getpid())


@pytest.mark.parametrize("field", ["NI", "VIRT", "RES", "SHR", "UNKNOWN"])
def test_unimplemented_fields(field):
    assert pickers([field])[0](os.getpid()) == "TODO"


@pytest.mark.parametrize(
    "field,expected",
    [("%CPU", "0.0"), ("USER", "0.0"), ("S", "?"), ("TIME+", "0:00.00"), ("%MEM", "0.0"), ("COMMAND", "?")],
)
def test_missing_process(field, expected):
    assert pickers([field])[0](MISSING_PID) == expected


def test_own_time_plus():
    hours, minutes, seconds = _time_plus_parts(pickers(["TIME+"])[0](os.getpid()))
    assert (hours.isdigit(), len(minutes), minutes.isdigit(), len(seconds), seconds.isdigit()) == (
        True,
        2,
        True,
        2,
        True,
    )


def test_own_memory_ratio():
    value = float(pickers(["%MEM"])[0](os.getpid()))
    assert 0.0 <= value <= 1.0


def test_own_cpu_two_decimals():
    value = pickers(["%CPU"])[0](os.getpid())
    whole, fraction = value.split(".")
    assert (whole.isdigit(), len(fraction), fraction.isdigit()) == (True, 2, True)


def test_command_name_of_self():
    assert command_name(os.getpid()) == os.path.basename(psutil.Process().exe())


def test_command_name_missing():
    assert command_name(MISSING_PID) == "?"