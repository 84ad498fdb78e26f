import math

import pytest

from procsuite.vmstat_parser import (
    CpuLoad,
    current_cpu_load,
    parse_cpu_load,
    parse_proc_file,
    parse_proc_text,
)

STAT_TEXT = (
    "cpu  10 20 30 40 0 0 0 0 0 0\n"
    "cpu0 10 20 30 40 0 0 0 0 0 0\n"
    "intr 100 1 2\n"
    "ctxt 500\n"
)


def _values(load: CpuLoad) -> list:
    return [
        load.user,
        load.nice,
        load.system,
        load.idle,
        load.io_wait,
        load.hardware_interrupt,
        load.software_interrupt,
        load.steal_time,
        load.guest,
        load.guest_nice,
    ]


def _total(load: CpuLoad) -> float:
    return sum(_values(load))


def test_parse_proc_text_splits_on_first_whitespace():
    parsed = parse_proc_text("intr 100 1 2\nctxt 500\n")
    assert parsed == {"intr": "100 1 2", "ctxt": "500"}


def test_parse_proc_text_trims_leading_space_of_value():
    parsed = parse_proc_text("MemTotal:     1024 kB\n")
    assert parsed == {"MemTotal:": "1024 kB"}


def test_parse_proc_text_skips_lines_without_whitespace():
    parsed = parse_proc_text("lonely\nkey value\n")
    assert parsed == {"key": "value"}


def test_parse_proc_text_later_key_wins():
    parsed = parse_proc_text("a first\na second\n")
    assert parsed == {"a": "second"}


def test_parse_proc_file_matches_text_parser(tmp_path):
    path = tmp_path / "stat"
    path.write_text(STAT_TEXT)
    assert parse_proc_file(path) == parse_proc_text(STAT_TEXT)


def test_cpu_load_percentages_sum_to_hundred():
    load = parse_cpu_load(STAT_TEXT)
    assert _total(load) == pytest.approx(100.0)


def test_cpu_load_keeps_ratios():
    load = parse_cpu_load(STAT_TEXT)
    assert load.nice == pytest.approx(load.user * 2)
    assert load.system == pytest.approx(load.user * 3)
    assert load.idle == pytest.approx(load.user * 4)


def test_cpu_load_missing_columns_count_as_zero():
    load = parse_cpu_load("cpu 1 1 2\n")
    assert load.idle == 0.0
    assert load.guest_nice == 0.0
    assert load.user + load.nice + load.system == pytest.approx(100.0)


def test_cpu_load_unreadable_optional_column_is_zero():
    load = parse_cpu_load("cpu 5 5 5 x 0 0 0 0 0 0\n")
    assert load.idle == 0.0
    assert _total(load) == pytest.approx(100.0)


def test_cpu_load_without_cpu_prefix_is_rejected():
    with pytest.raises(ValueError):
        parse_cpu_load("intr 1 2 3\n")


def test_cpu_load_bad_required_column_is_rejected():
    with pytest.raises(ValueError):
        parse_cpu_load("cpu x 1 2 3\n")


def test_cpu_load_empty_text_is_rejected():
    with pytest.raises(ValueError):
        parse_cpu_load("")


def test_cpu_load_zero_total_is_nan():
    load = parse_cpu_load("cpu 0 0 0 0\n")
    assert [math.isnan(value) for value in _values(load)] == [True] * 10


def test_current_cpu_load_reads_file(tmp_path):
    path = tmp_path / "stat"
    path.write_text(STAT_TEXT)
    assert current_cpu_load(path) == parse_cpu_load(STAT_TEXT)