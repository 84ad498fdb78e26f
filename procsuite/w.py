"""Show who is logged on and what they are doing."""

from __future__ import annotations

import argparse
import os
import re
import struct
import sys
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from os import PathLike
from pathlib import Path
from typing import Optional, Sequence, Union

_VERSION = "0.0.1"
_PROC = Path("/proc")
_DEV = Path("/dev")
_UTMP = Path("/var/run/utmp")
_USER_PROCESS = 7
_UTMP_RECORD = struct.Struct("<h2xi32s4s32s256shhiii4i20s")
_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_LOGIN_TIME = re.compile(
    r"(\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2})(?:\.(\d{1,9}))? ([+-]\d{2}:\d{2})"
)

StrPath = Union[str, "PathLike[str]"]


class _HelpFormatter(argparse.HelpFormatter):
    def add_usage(self, usage, actions, groups, prefix=None):  # type: ignore[override]
        super().add_usage(usage, actions, groups, prefix="Usage: ")


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


@dataclass
class UserInfo:
    """One logged-in session as shown in a line of output."""

    user: str
    terminal: str
    login_time: str
    idle_time: float
    jcpu: str
    pcpu: str
    command: str


@dataclass(frozen=True)
class _UtmpRecord:
    type: int
    pid: int
    line: str
    user: str
    host: str
    login_time: datetime


def format_time_elapsed(seconds: float, old_style: bool = False) -> str:
    """Format an idle time the way w shows it."""
    if seconds < 0:
        raise ValueError("duration is out of range")
    total_seconds = int(seconds)
    milliseconds = int(seconds * 1000)
    days = total_seconds // 86400
    hours = total_seconds // 3600
    minutes = total_seconds // 60
    if days >= 2:
        return f"{days}days"
    if hours >= 1:
        return f"{hours}:{minutes % 60:02}{'' if old_style else 'm'}"
    if minutes >= 1:
        return f"{minutes % 60}:{total_seconds % 60:02}{'m' if old_style else ''}"
    if old_style:
        return ""
    return f"{total_seconds % 60}.{(milliseconds % 1000) // 10:02}s"


def format_login_time(value: str, now: Optional[datetime] = None) -> str:
    """Show a login time as ``HH:MM`` today, or as weekday and day otherwise."""
    text = value
    cut = text.rfind(":")
    if cut >= 0:
        text = text[:cut]
    match = _LOGIN_TIME.fullmatch(text)
    if match is None:
        raise ValueError(f"invalid login time: {value!r}")
    moment, fraction, offset = match.groups()
    parsed = datetime.strptime(f"{moment} {offset}", "%Y-%m-%d %H:%M:%S %z")
    if fraction:
        parsed = parsed.replace(microsecond=int(fraction[:6].ljust(6, "0")))
    current = now if now is not None else datetime.now().astimezone()
    if current.day == parsed.day:
        return f"{parsed.hour:02}:{parsed.minute:02}"
    return f"{_WEEKDAYS[parsed.weekday()]}{parsed.day:02}"


def _stat_fields(pid: int) -> list[str]:
    return (_PROC / str(pid) / "stat").read_text().split()


def _int_or_zero(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        return 0


def _float_or_zero(text: str) -> float:
    try:
        return float(text)
    except ValueError:
        return 0.0


def fetch_terminal_number(pid: int) -> int:
    """The controlling terminal's device number of a process, from its stat file."""
    return _int_or_zero(_stat_fields(pid)[6])


def fetch_pcpu_time(pid: int) -> float:
    """CPU seconds a process has used in user and system mode."""
    fields = _stat_fields(pid)
    ticks = _float_or_zero(fields[13]) + _float_or_zero(fields[14])
    return ticks / os.sysconf("SC_CLK_TCK")


def fetch_cmdline(pid: int) -> str:
    """The raw command line of a process, arguments separated by NUL characters."""
    return (_PROC / str(pid) / "cmdline").read_text()


def fetch_terminal_jcpu() -> dict[int, float]:
    """Total CPU seconds of all processes, per terminal device number."""
    totals: dict[int, float] = {}
    for entry in _PROC.iterdir():
        if not entry.name.isdigit() or not entry.is_dir():
            continue
        pid = int(entry.name)
        try:
            terminal = fetch_terminal_number(pid)
            cpu = fetch_pcpu_time(pid)
        except FileNotFoundError:
            # The process ended while the table was being read.
            continue
        totals[terminal] = totals.get(terminal, 0.0) + cpu
    return totals


def fetch_idle_time(tty: str) -> float:
    """Seconds since the terminal device was last read."""
    if not sys.platform.startswith("linux"):
        return 0.0
    accessed = (_DEV / tty).stat().st_atime
    return max(time.time() - accessed, 0.0)


def read_utmp_records(path: StrPath = _UTMP) -> list[_UtmpRecord]:
    """Every record of a login accounting file; none when the file is missing."""
    try:
        data = Path(path).read_bytes()
    except FileNotFoundError:
        return []

    def text(raw: bytes) -> str:
        return raw.split(b"\0", 1)[0].decode(errors="replace")

    records = []
    usable = len(data) - len(data) % _UTMP_RECORD.size
    for fields in _UTMP_RECORD.iter_unpack(data[:usable]):
        kind, pid, line, _id, user, host, _term, _exit, _session, sec, usec = fields[:11]
        login = datetime.fromtimestamp(sec, tz=timezone.utc) + timedelta(microseconds=usec)
        records.append(_UtmpRecord(kind, pid, text(line), text(user), text(host), login))
    return records


def _offset_text(moment: datetime) -> str:
    offset = moment.utcoffset() or timedelta(0)
    seconds = int(offset.total_seconds())
    sign = "-" if seconds < 0 else "+"
    hours, rest = divmod(abs(seconds), 3600)
    minutes, secs = divmod(rest, 60)
    return f"{sign}{hours:02}:{minutes:02}:{secs:02}"


def _login_time_text(moment: datetime) -> str:
    local = moment.astimezone()
    return f"{local:%Y-%m-%d %H:%M:%S}.{local.microsecond:06} {_offset_text(local)}"


def _float_text(value: float) -> str:
    if value.is_integer():
        return str(int(value))
    text = repr(value)
    return format(Decimal(text), "f") if "e" in text else text


def fetch_user_info() -> list[UserInfo]:
    """A line of information for every logged-in user session."""
    if not sys.platform.startswith("linux"):
        return []
    terminal_jcpu = fetch_terminal_jcpu()
    sessions = []
    for record in read_utmp_records():
        if record.type != _USER_PROCESS:
            continue
        try:
            jcpu = terminal_jcpu.get(fetch_terminal_number(record.pid), 0.0)
        except (OSError, IndexError):
            jcpu = 0.0
        try:
            login = format_login_time(_login_time_text(record.login_time))
        except ValueError:
            login = ""
        try:
            pcpu = fetch_pcpu_time(record.pid)
        except (OSError, IndexError):
            pcpu = 0.0
        try:
            command = fetch_cmdline(record.pid)
        except (OSError, ValueError):
            command = ""
        sessions.append(
            UserInfo(
                user=record.user,
                terminal=record.line,
                login_time=login,
                idle_time=fetch_idle_time(record.line),
                jcpu=f"{jcpu:.2f}",
                pcpu=_float_text(pcpu),
                command=command,
            )
        )
    return sessions


def _idle_text(seconds: float, old_style: bool) -> str:
    try:
        return format_time_elapsed(seconds, old_style)
    except ValueError:
        return ""


def format_user_line(user: UserInfo, short: bool = False, old_style: bool = False) -> str:
    """One output line for a session, in the short or the full layout."""
    idle = _idle_text(user.idle_time, old_style)
    if short:
        return f"{user.user:<9}{user.terminal:<9}{idle:<7}{user.command}"
    return (
        f"{user.user:<9}{user.terminal:<10}{user.login_time:<9}{idle:<6} "
        f"{user.jcpu:<7}{user.pcpu:<6}{user.command}"
    )


def _header(short: bool) -> str:
    if short:
        return f"{'USER':<9}{'TTY':<9}{'IDLE':<7}WHAT"
    return f"{'USER':<9}{'TTY':<10}{'LOGIN@':<9}{'IDLE':<6} {'JCPU':<7}{'PCPU':<6}WHAT"


def _build_parser() -> _Parser:
    parser = _Parser(
        prog="w",
        description="Show who is logged on and what they are doing.",
        add_help=False,
        formatter_class=_HelpFormatter,
    )
    options = parser.add_argument_group("Options")
    options.add_argument("--help", action="help", help="Print help information")
    options.add_argument("-h", "--no-header", action="store_true", help="do not print header")
    options.add_argument("-u", "--no-current", action="store_true",
                         help="ignore current process username")
    options.add_argument("-s", "--short", action="store_true", help="short format")
    options.add_argument("-f", "--from", dest="from_", action="store_true",
                         help="show remote hostname field")
    options.add_argument("-o", "--old-style", action="store_true", help="old style output")
    options.add_argument("-i", "--ip-addr", action="store_true",
                         help="display IP address instead of hostname (if possible)")
    options.add_argument("-p", "--pids", action="store_true",
                         help="show the PID(s) of processes in WHAT")
    options.add_argument("-V", "--version", action="version", version=f"%(prog)s {_VERSION}")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Print the logged-in users and return the exit status."""
    args = _build_parser().parse_args(argv)
    try:
        sessions = fetch_user_info()
    except OSError as error:
        print(f"w: failed to fetch user info: {error}", file=sys.stderr)
        return 1
    if not args.no_header:
        print(_header(args.short))
    for session in sessions:
        print(format_user_line(session, args.short, args.old_style))
    return 0


if __name__ == "__main__":
    sys.exit(main())