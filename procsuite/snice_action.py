"""Process selection and priority changes performed by snice."""

from __future__ import annotations

import enum
import errno
import os
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Union

import psutil

from procsuite.priority import Priority

_PROC = Path("/proc")

_TTY_MAJOR = 4
_SERIAL_MINOR_BASE = 64
_PTS_MAJOR = 136

_PTS = re.compile(r"pts/(\d+)")
_SERIAL = re.compile(r"ttyS(\d+)")
_CONSOLE = re.compile(r"tty(\d+)")


class TargetKind(enum.Enum):
    """How a target expression selects processes."""

    COMMAND = "command"
    PID = "pid"
    TTY = "tty"
    USER = "user"


def _encode_device(major: int, minor: int) -> int:
    # The kernel's encoding of a device number in /proc/<pid>/stat.
    return (minor & 0xFF) | (major << 8) | ((minor & ~0xFF) << 12)


def parse_tty(name: str) -> int:
    """Turn a terminal name such as ``pts/3``, ``tty1``, ``ttyS0`` or ``?`` into its device number.

    ``?`` stands for "no terminal" and maps to 0.
    """
    text = name[len("/dev/"):] if name.startswith("/dev/") else name
    if text == "?":
        return 0
    match = _PTS.fullmatch(text)
    if match:
        return _encode_device(_PTS_MAJOR, int(match.group(1)))
    match = _SERIAL.fullmatch(text)
    if match:
        return _encode_device(_TTY_MAJOR, _SERIAL_MINOR_BASE + int(match.group(1)))
    match = _CONSOLE.fullmatch(text)
    if match:
        return _encode_device(_TTY_MAJOR, int(match.group(1)))
    raise ValueError(f"invalid terminal: {name!r}")


def tty_number_of(pid: int) -> int:
    """The controlling terminal's device number of a process, 0 when it has none."""
    text = (_PROC / str(pid) / "stat").read_text()
    # The command name may hold spaces and parentheses; fields follow the last ')'.
    fields = text[text.rindex(")") + 1:].split()
    return int(fields[4])


def _uid_of_user(name: str) -> Optional[int]:
    try:
        import pwd
    except ImportError:
        return None
    try:
        return pwd.getpwnam(name).pw_uid
    except KeyError:
        return None


@dataclass(frozen=True)
class SelectedTarget:
    """One selection expression given on the command line."""

    kind: TargetKind
    value: Union[str, int]

    def to_pids(self) -> list[int]:
        """The pids of the processes this expression selects."""
        if self.kind is TargetKind.PID:
            return [int(self.value)]
        if self.kind is TargetKind.COMMAND:
            return self._from_command(str(self.value))
        if self.kind is TargetKind.TTY:
            return self._from_tty(int(self.value))
        return self._from_user(str(self.value))

    @staticmethod
    def _from_command(command: str) -> list[int]:
        return [
            proc.pid
            for proc in psutil.process_iter(["name"])
            if proc.info["name"] is not None and command in proc.info["name"]
        ]

    @staticmethod
    def _from_tty(tty: int) -> list[int]:
        if not sys.platform.startswith("linux"):
            return []
        selected = []
        for pid in psutil.pids():
            try:
                if tty_number_of(pid) == tty:
                    selected.append(pid)
            except (OSError, ValueError, IndexError):
                continue
        return selected

    @staticmethod
    def _from_user(user: str) -> list[int]:
        uid = _uid_of_user(user)
        if uid is None:
            return []
        return [
            proc.pid
            for proc in psutil.process_iter(["uids"])
            if proc.info["uids"] is not None and proc.info["uids"].real == uid
        ]


class ActionResult(enum.Enum):
    """Outcome of changing one process's priority."""

    PERMISSION_DENIED = "Permission Denied"
    SUCCESS = "Success"

    def __str__(self) -> str:
        return self.value


def set_priority(pid: int, prio: Priority) -> Optional[ActionResult]:
    """Change a process's nice value; ``None`` when nothing could be done."""
    if not sys.platform.startswith("linux"):
        return None
    try:
        current = os.getpriority(os.PRIO_PROCESS, pid)
    except OSError:
        return None
    try:
        os.setpriority(os.PRIO_PROCESS, pid, prio.apply(current))
    except OSError as error:
        return ActionResult.PERMISSION_DENIED if error.errno == errno.ESRCH else None
    return ActionResult.SUCCESS


def perform_action(pids: Iterable[int], prio: Priority) -> list[Optional[ActionResult]]:
    """Apply a priority change to every pid, in order."""
    return [set_priority(pid, prio) for pid in pids]