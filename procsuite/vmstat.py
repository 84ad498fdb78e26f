"""Report virtual memory statistics."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping, Optional, Sequence, Union

from procsuite.vmstat_parser import CpuLoad, parse_cpu_load, parse_proc_file, parse_proc_text

_VERSION = "0.0.1"
_PROC = Path("/proc")


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


@dataclass
class Section:
    """One column group of the report: its banner, column titles and values.

    Each value is paired with the width it is right-aligned to.
    """

    name: str
    title: str
    values: Sequence[tuple[int, str]] = field(default_factory=list)


def concat_sections(sections: Iterable[Section]) -> tuple[str, str, str]:
    """Join sections into the banner, title and data lines.

    A value wider than its column borrows the space from the next one.
    """
    names: list[str] = []
    titles: list[str] = []
    data: list[str] = []
    excess = 0
    for section in sections:
        names.append(section.name)
        titles.append(section.title)
        for width, value in section.values:
            width = max(width - excess, 0)
            formatted = value.rjust(width)
            excess = len(formatted) - width
            data.append(formatted)
    return " ".join(names), " ".join(titles), " ".join(data)


def _number(mapping: Mapping[str, Union[str, int]], key: str, default: Optional[int] = None) -> int:
    value = mapping.get(key, mapping.get(f"{key}:"))
    if value is None:
        if default is None:
            raise KeyError(key)
        return default
    if isinstance(value, int):
        return value
    words = str(value).split()
    if not words:
        if default is None:
            raise ValueError(f"no value for {key!r}")
        return default
    return int(words[0])


def _rate(count: int, uptime: float) -> str:
    return f"{count / uptime:.0f}"


def process_section(stat_text: str) -> Section:
    """Runnable and blocked process counts from /proc/stat text."""
    stat = parse_proc_text(stat_text)
    running = _number(stat, "procs_running", 0)
    blocked = _number(stat, "procs_blocked", 0)
    return Section("procs", " r  b", [(2, str(running)), (2, str(blocked))])


def memory_section(meminfo: Mapping[str, Union[str, int]]) -> Section:
    """Swap used, free, buffer and cache memory in KiB from /proc/meminfo data."""
    swap_used = _number(meminfo, "SwapTotal") - _number(meminfo, "SwapFree")
    values = [swap_used, _number(meminfo, "MemFree"), _number(meminfo, "Buffers"), _number(meminfo, "Cached")]
    return Section(
        "-----------memory----------",
        "  swpd   free   buff  cache",
        [(6, str(value)) for value in values],
    )


def swap_section(vmstat: Mapping[str, Union[str, int]], uptime: float) -> Section:
    """Pages swapped in and out per second since boot."""
    return Section(
        "---swap--",
        "  si   so",
        [
            (4, _rate(_number(vmstat, "pswpin"), uptime)),
            (4, _rate(_number(vmstat, "pswpout"), uptime)),
        ],
    )


def io_section(vmstat: Mapping[str, Union[str, int]], uptime: float) -> Section:
    """Blocks read and written per second since boot."""
    return Section(
        "-----io----",
        "   bi    bo",
        [
            (5, _rate(_number(vmstat, "pgpgin"), uptime)),
            (5, _rate(_number(vmstat, "pgpgout"), uptime)),
        ],
    )


def system_section(stat: Mapping[str, Union[str, int]], uptime: float) -> Section:
    """Interrupts and context switches per second since boot."""
    return Section(
        "-system--",
        "  in   cs",
        [
            (4, _rate(_number(stat, "intr"), uptime)),
            (4, _rate(_number(stat, "ctxt"), uptime)),
        ],
    )


def cpu_section(cpu_load: CpuLoad) -> Section:
    """CPU time shares in whole percent."""
    shares = [
        cpu_load.user,
        cpu_load.system,
        cpu_load.idle,
        cpu_load.io_wait,
        cpu_load.steal_time,
        cpu_load.guest,
    ]
    return Section("-------cpu-------", "us sy id wa st gu", [(2, f"{share:.0f}") for share in shares])


def _uptime(path: Path) -> float:
    return float(path.read_text().split()[0])


def collect_sections() -> list[Section]:
    """Read the live system state; empty where /proc is not available."""
    if not sys.platform.startswith("linux"):
        return []
    stat_text = (_PROC / "stat").read_text()
    stat = parse_proc_text(stat_text)
    vmstat = parse_proc_file(_PROC / "vmstat")
    uptime = _uptime(_PROC / "uptime")
    return [
        process_section(stat_text),
        memory_section(parse_proc_file(_PROC / "meminfo")),
        swap_section(vmstat, uptime),
        io_section(vmstat, uptime),
        system_section(stat, uptime),
        cpu_section(parse_cpu_load(stat_text)),
    ]


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Print one vmstat report."""
    parser = _Parser(prog="vmstat", description="Report virtual memory statistics.")
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {_VERSION}")
    parser.parse_args(argv)
    for line in concat_sections(collect_sections()):
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())