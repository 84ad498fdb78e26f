import os
import struct
import subprocess
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from procsuite.w import (
    UserInfo,
    fetch_cmdline,
    fetch_pcpu_time,
    fetch_terminal_number,
    format_login_time,
    format_time_elapsed,
    format_user_line,
    main,
    read_utmp_records,
)


def test_invalid_arg():
    with pytest.raises(SystemExit) as info:
        main(["--definitely-invalid"])
    assert info.value.code == 1


def test_help(capsys):
    with pytest.raises(SystemExit) as info:
        main(["--help"])
    assert info.value.code == 0
    out = capsys.readouterr().out
    assert "Usage" in out
    assert "Options" in out


@pytest.mark.parametrize("flag", ["-h", "--no-header"])
def test_no_header(flag, capsys):
    main([flag])
    out = capsys.readouterr().out
    assert "USER     TTY      LOGIN@   IDLE   JCPU   PCPU WHAT" not in out


def test_option_short(capsys):
    assert main(["--short"]) == 0
    header = capsys.readouterr().out.split("\n")[0]
    assert "USER     TTY      IDLE   WHAT" in header
    assert "LOGIN@" not in header


def test_format_time_elapsed():
    elapsed = 60 * 60 * 18 + 60 * 18
    assert format_time_elapsed(elapsed, False) == "18:18m"
    assert format_time_elapsed(elapsed, True) == "18:18"


def test_format_time_elapsed_ranges():
    assert format_time_elapsed(3 * 86400, False) == "3days"
    assert format_time_elapsed(125, False) == "2:05"
    assert format_time_elapsed(125, True) == "2:05m"
    assert format_time_elapsed(5.25, False) == "5.25s"
    assert format_time_elapsed(5.25, True) == ""


def test_format_time_elapsed_negative():
    with pytest.raises(ValueError):
        format_time_elapsed(-1, False)


def test_format_login_time():
    now = datetime(2024, 3, 15, 10, 20, 30, 123456, tzinfo=timezone(timedelta(hours=1)))
    today = format_login_time("2024-03-15 10:20:30.123456 +01:00:00", now)
    assert today == "10:20"
    assert ":" in today and len(today) == 5
    assert format_login_time("2024-03-10 10:20:30.123456 +01:00:00", now) == "Sun10"


def test_format_login_time_invalid():
    with pytest.raises(ValueError):
        format_login_time("yesterday at noon")


def test_fetch_cmdline():
    pid = os.getpid()
    path = Path("/proc") / str(pid) / "cmdline"
    assert fetch_cmdline(pid) == path.read_text()


def test_fetch_terminal_number():
    pid = os.getpid()
    stat = (Path("/proc") / str(pid) / "stat").read_text().split()
    assert str(fetch_terminal_number(pid)) == stat[6]


def test_fetch_pcpu_time():
    child = subprocess.Popen(["sleep", "5"])
    try:
        stat = (Path("/proc") / str(child.pid) / "stat").read_text().split()
        expected = (float(stat[13]) + float(stat[14])) / os.sysconf("SC_CLK_TCK")
        assert fetch_pcpu_time(child.pid) == expected
    finally:
        child.kill()
        child.wait()


def test_fetch_missing_process():
    with pytest.raises(OSError):
        fetch_cmdline(999_999_999)


def _utmp_record(kind, pid, line, user, seconds):
    return struct.pack(
        "<h2xi32s4s32s256shhiii4i20s",
        kind, pid, line, b"ts/0", user, b"", 0, 0, 0, seconds, 0, 0, 0, 0, 0, b"",
    )


def test_read_utmp_records(tmp_path):
    path = tmp_path / "utmp"
    path.write_bytes(
        _utmp_record(7, 1234, b"pts/0", b"alice", 1_700_000_000)
        + _utmp_record(8, 99, b"pts/1", b"", 1_700_000_100)
    )
    records = read_utmp_records(path)
    assert len(records) == 2
    first = records[0]
    assert (first.type, first.pid, first.line, first.user) == (7, 1234, "pts/0", "alice")
    assert first.login_time == datetime.fromtimestamp(1_700_000_000, timezone.utc)
    assert records[1].type == 8


def test_read_utmp_missing_file(tmp_path):
    assert read_utmp_records(tmp_path / "absent") == []


def test_format_user_line():
    info = UserInfo("root", "pts/0", "10:20", 0.0, "0.01", "0", "bash")
    assert format_user_line(info, short=True) == "root     pts/0    0.00s  bash"
    assert format_user_line(info) == "root     pts/0     10:20    0.00s  0.01   0     bash"
    assert format_user_line(info, short=True, old_style=True) == "root     pts/0           bash"