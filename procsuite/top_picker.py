"""Per-process column values shown by top."""

from __future__ import annotations

import os
import sys
import time
from pathlib import Path
from typing import Callable, Optional, Sequence

import psutil

Picker = Callable[[int], str]

_PROC = Path("/proc")

_STATUS_NAMES = {
    psutil.STATUS_RUNNING: "Runnable",
    psutil.STATUS_SLEEPING: "Sleeping",
    psutil.STATUS_DISK_SLEEP: "UninterruptibleDiskSleep",
    psutil.STATUS_STOPPED: "Stopped",
    psutil.STATUS_TRACING_STOP: "Tracing",
    psutil.STATUS_ZOMBIE: "Zombie",
    psutil.STATUS_DEAD: "Dead",
    psutil.STATUS_WAKE_KILL: "Wakekill",
    psutil.STATUS_WAKING: "Waking",
    psutil.STATUS_IDLE: "Idle",
    psutil.STATUS_LOCKED: "LockBlocked",
    psutil.STATUS_WAITING: "Waiting",
    psutil.STATUS_PARKED: "Parked",
}

# Process objects are kept between calls so that CPU usage is measured
# over the interval since the previous reading.
_cache: dict[int, psutil.Process] = {}


def _process(pid: int) -> Optional[psutil.Process]:
    proc = _cache.get(pid)
    if proc is not None:
        try:
            if proc.is_running():
                return proc
        except psutil.Error:
            pass
        del _cache[pid]
    try:
        proc = psutil.Process(pid)
    except (psutil.Error, ValueError):
        return None
    _cache[pid] = proc
    return proc


def format_time_plus(total_seconds: int) -> str:
    """Format a running time as ``H:MM.SS``."""
    total = int(total_seconds)
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours}:{minutes:02}.{seconds:02}"


def status_letter(status: str) -> str:
    """The one-letter state shown for a process status."""
    return _STATUS_NAMES.get(status, "Unknown")[0]


def _todo(_pid: int) -> str:
    return "TODO"


def _pid(pid: int) -> str:
    return str(pid)


def _cpu(pid: int) -> str:
    proc = _process(pid)
    if proc is None:
        return "0.0"
    try:
        return f"{proc.cpu_percent(None):.2f}"
    except psutil.Error:
        return "0.0"


def _user(pid: int) -> str:
    proc = _process(pid)
    if proc is None:
        return "0.0"
    try:
        uid = proc.uids().real
    except (psutil.Error, AttributeError):
        return "?"
    try:
        import pwd
    except ImportError:
        return "?"
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return "?"


def _pr(pid: int) -> str:
    if os.name != "posix":
        return "0"
    try:
        return str(os.getpriority(os.PRIO_PROCESS, pid))
    except OSError:
        return "0"


def _status(pid: int) -> str:
    proc = _process(pid)
    if proc is None:
        return "?"
    try:
        return status_letter(proc.status())
    except psutil.Error:
        return "?"


def _time_plus(pid: int) -> str:
    proc = _process(pid)
    if proc is None:
        return "0:00.00"
    try:
        started = proc.create_time()
    except psutil.Error:
        return "0:00.00"
    return format_time_plus(max(int(time.time() - started), 0))


def _mem(pid: int) -> str:
    proc = _process(pid)
    if proc is None:
        return "0.0"
    try:
        rss = proc.memory_info().rss
    except psutil.Error:
        return "0.0"
    return f"{rss / psutil.virtual_memory().total:.1f}"


def _name_from_status(pid: int) -> str:
    try:
        lines = (_PROC / str(pid) / "status").read_text().splitlines()
    except OSError:
        return ""
    if not lines:
        return ""
    _, _, value = lines[0].partition(":")
    return value.strip()


def command_name(pid: int) -> str:
    """The executable's file name, else the command line, else the kernel's name."""
    proc = _process(pid)
    if proc is None:
        return "?"
    try:
        exe = proc.exe()
    except psutil.Error:
        exe = ""
    if exe:
        name = os.path.basename(exe.rstrip("/"))
        if name:
            return name
    try:
        arguments = proc.cmdline()
    except psutil.Error:
        arguments = []
    joined = " ".join(arguments).strip()
    if not joined and sys.platform.startswith("linux"):
        return _name_from_status(pid)
    return joined


_PICKERS: dict[str, Picker] = {
    "PID": _pid,
    "USER": _user,
    "PR": _pr,
    "RES": _todo,
    "SHR": _todo,
    "S": _status,
    "%CPU": _cpu,
    "TIME+": _time_plus,
    "%MEM": _mem,
    "COMMAND": command_name,
}


def pickers(fields: Sequence[str]) -> list[Picker]:
    """One function per field that turns a pid into that column's text."""
    return [_PICKERS.get(name, _todo) for name in fields]