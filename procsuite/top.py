"""Display the system's processes."""

from __future__ import annotations

import argparse
import enum
import sys
import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Union

import psutil

from procsuite.top_header import header
from procsuite.top_picker import pickers

_VERSION = "0.0.1"
_VALUE_OPTIONS = {"-E", "-p", "-U", "-u", "-w"}
_U32_MAX = 0xFFFF_FFFF


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


class FilterKind(enum.Enum):
    """What a process filter matches on."""

    PID = "pid"
    USER = "user"
    EUSER = "euser"


@dataclass(frozen=True)
class Filter:
    """Which processes to show: a set of pids, or a real or effective uid."""

    kind: FilterKind
    value: Union[tuple[int, ...], str]


def apply_width(text: str, width: int) -> str:
    """Cut or pad a line to exactly ``width`` characters."""
    if len(text) > width:
        return text[:width]
    return text.ljust(width)


def try_into_uid(value: str) -> str:
    """A uid given as a number or a user name, as text."""
    text = str(value)
    if text.isascii() and text.isdigit() and int(text) <= _U32_MAX:
        return text
    try:
        import pwd
    except ImportError:
        raise ValueError("Invalid user") from None
    try:
        return str(pwd.getpwnam(text).pw_uid)
    except KeyError:
        raise ValueError("Invalid user") from None


def selected_fields() -> list[str]:
    """The columns shown, in order."""
    return ["PID", "USER", "PR", "NI", "VIRT", "RES", "SHR", "S", "%CPU", "%MEM", "TIME+", "COMMAND"]


def _uid_matches(pid: int, uid: str, effective: bool) -> bool:
    try:
        uids = psutil.Process(pid).uids()
    except (psutil.Error, AttributeError, ValueError):
        return False
    return str(uids.effective if effective else uids.real) == uid


def construct_filter(filter: Optional[Filter]) -> Callable[[int], bool]:
    """A predicate on pids built from a filter; ``None`` keeps every process."""
    if filter is None:
        return lambda _pid: True
    if filter.kind is FilterKind.PID:
        wanted = frozenset(filter.value)  # type: ignore[arg-type]
        return lambda pid: pid in wanted
    uid = str(filter.value)
    effective = filter.kind is FilterKind.EUSER
    return lambda pid: _uid_matches(pid, uid, effective)


def collect(filter: Optional[Filter], fields: Sequence[str]) -> list[list[str]]:
    """One row of column texts for every selected process."""
    column_pickers = pickers(fields)
    keep = construct_filter(filter)
    return [[pick(pid) for pick in column_pickers] for pid in psutil.pids() if keep(pid)]


def render_table(rows: Sequence[Sequence[str]]) -> str:
    """Left-aligned columns with one space of padding on each side, no borders."""
    if not rows:
        return ""
    columns = max(len(row) for row in rows)
    widths = [max((len(row[c]) for row in rows if c < len(row)), default=0) for c in range(columns)]
    lines = []
    for row in rows:
        cells = list(row) + [""] * (columns - len(row))
        lines.append("".join(f" {cell.ljust(width)} " for cell, width in zip(cells, widths)))
    return "".join(f"{line}\n" for line in lines)


def _pid_list(text: str) -> list[int]:
    pids = []
    for part in text.split(","):
        if not (part.isascii() and part.isdigit()) or int(part) > _U32_MAX:
            raise argparse.ArgumentTypeError(f"invalid value '{part}'")
        pids.append(int(part))
    return pids


def _width(text: str) -> int:
    if not (text.isascii() and text.isdigit()):
        raise argparse.ArgumentTypeError(f"invalid value '{text}'")
    return int(text)


def _build_parser() -> _Parser:
    parser = _Parser(prog="top", description="Display Linux processes.")
    parser.add_argument("-E", "--scale-summary-mem", metavar="SCALE", help="set mem as: k,m,g,t,p,e for SCALE")
    parser.add_argument("-O", "--list-fields", action="store_true", help="output all field names, then exit")
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "-p", "--pid", metavar="PIDLIST", action="extend", type=_pid_list,
        help="monitor only the tasks in PIDLIST",
    )
    group.add_argument("-U", "--filter-any-user", metavar="USER", help="show only processes owned by USER")
    group.add_argument("-u", "--filter-only-euser", metavar="EUSER", help="show only processes owned by USER")
    parser.add_argument("-w", "--width", metavar="COLUMNS", type=_width, help="change print width [,use COLUMNS]")
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {_VERSION}")
    return parser


def _split_short_assignments(argv: Sequence[str]) -> list[str]:
    result: list[str] = []
    for arg in argv:
        if arg[:2] in _VALUE_OPTIONS and len(arg) > 2 and arg[2] == "=":
            result.extend([arg[:2], arg[3:]])
        else:
            result.append(arg)
    return result


def _filter_from(args: argparse.Namespace) -> Optional[Filter]:
    if args.pid:
        return Filter(FilterKind.PID, tuple(args.pid))
    if args.filter_any_user is not None:
        return Filter(FilterKind.USER, try_into_uid(args.filter_any_user))
    if args.filter_only_euser is not None:
        return Filter(FilterKind.EUSER, try_into_uid(args.filter_only_euser))
    return None


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Print one snapshot of the process table and return the exit status."""
    raw = list(sys.argv[1:] if argv is None else argv)
    args = _build_parser().parse_args(_split_short_assignments(raw))

    # CPU usage is measured between two readings.
    cpu = pickers(["%CPU"])[0]
    for pid in psutil.pids():
        cpu(pid)
    time.sleep(0.2)

    try:
        process_filter = _filter_from(args)
    except ValueError as error:
        print(f"top: {error}", file=sys.stderr)
        return 1

    fields = selected_fields()
    rows = [fields, *collect(process_filter, fields)]
    table = render_table(rows)

    print(header(args.scale_summary_mem))
    print("\n")
    for line in table.splitlines():
        print(line if args.width is None else apply_width(line, args.width))
    return 0


if __name__ == "__main__":
    sys.exit(main())