"""Parsers for the kernel's /proc text files used by vmstat and top."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from os import PathLike
from pathlib import Path
from typing import Union

PROC_STAT = Path("/proc/stat")

_WHITESPACE = re.compile(r"\s")

StrPath = Union[str, "PathLike[str]"]


@dataclass(frozen=True)
class CpuLoad:
    """Share of CPU time spent in each state, in percent of the total."""

    user: float
    nice: float
    system: float
    idle: float
    io_wait: float
    hardware_interrupt: float
    software_interrupt: float
    steal_time: float
    guest: float
    guest_nice: float


def parse_proc_text(content: str) -> dict[str, str]:
    """Map the first word of every line to the rest of that line.

    Lines holding no whitespace are skipped; a later key replaces an earlier one.
    """
    result: dict[str, str] = {}
    for line in content.splitlines():
        match = _WHITESPACE.search(line)
        if match is None:
            continue
        result[line[: match.start()]] = line[match.end():].lstrip()
    return result


def parse_proc_file(path: StrPath) -> dict[str, str]:
    """Read a /proc style file and parse it with :func:`parse_proc_text`."""
    return parse_proc_text(Path(path).read_text())


def _optional_field(fields: list[str], index: int) -> float:
    # Columns added by later kernels count as zero when absent or unreadable.
    try:
        return float(fields[index])
    except (IndexError, ValueError):
        return 0.0


def parse_cpu_load(content: str) -> CpuLoad:
    """Compute the CPU load from the aggregate ``cpu`` line of /proc/stat text."""
    lines = content.splitlines()
    if not lines or not lines[0].startswith("cpu"):
        raise ValueError("stat data does not start with a 'cpu' line")
    fields = [part for part in lines[0][len("cpu"):].split(" ") if part]
    if len(fields) < 3:
        raise ValueError("stat 'cpu' line holds fewer than three values")
    user, nice, system = (float(value) for value in fields[:3])
    rest = [_optional_field(fields, index) for index in range(3, 10)]
    idle, io_wait, hard_irq, soft_irq, steal, guest, guest_nice = rest
    total = user + nice + system + sum(rest)

    def percent(value: float) -> float:
        return value / total * 100.0 if total else math.nan

    return CpuLoad(
        user=percent(user),
        nice=percent(nice),
        system=percent(system),
        idle=percent(idle),
        io_wait=percent(io_wait),
        hardware_interrupt=percent(hard_irq),
        software_interrupt=percent(soft_irq),
        steal_time=percent(steal),
        guest=percent(guest),
        guest_nice=percent(guest_nice),
    )


def current_cpu_load(path: StrPath = PROC_STAT) -> CpuLoad:
    """Read the CPU load accumulated since boot from a stat file."""
    return parse_cpu_load(Path(path).read_text())