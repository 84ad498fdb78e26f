"""Change the priority of selected processes, or list signal names."""

from __future__ import annotations

import argparse
import enum
import os
import signal
import sys
from typing import Iterable, Optional, Sequence

import psutil

from procsuite.priority import Priority, PriorityParseError
from procsuite.snice_action import (
    ActionResult,
    SelectedTarget,
    TargetKind,
    parse_tty,
    perform_action,
    tty_number_of,
)

_VERSION = "0.0.1"

_LINUX_SIGNALS = (
    "EXIT", "HUP", "INT", "QUIT", "ILL", "TRAP", "ABRT", "BUS", "FPE", "KILL", "USR1", "SEGV",
    "USR2", "PIPE", "ALRM", "TERM", "STKFLT", "CHLD", "CONT", "STOP", "TSTP", "TTIN", "TTOU",
    "URG", "XCPU", "XFSZ", "VTALRM", "PROF", "WINCH", "POLL", "PWR", "SYS",
)

_VALUE_OPTIONS = {"-c", "-p", "-t", "-u"}


class _UsageError(Exception):
    pass


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


class SignalDisplay(enum.Enum):
    """How signal names are listed."""

    LIST = "list"
    TABLE = "table"

    def display(self, signals: Sequence[str]) -> str:
        if self is SignalDisplay.LIST:
            return format_signal_list(signals)
        return format_signal_table(signals)


def _chunks(items: Sequence[str], size: int) -> Iterable[Sequence[str]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


def format_signal_list(signals: Sequence[str]) -> str:
    """Signal names after the first, sixteen to a line."""
    return "\n".join(" ".join(chunk) for chunk in _chunks(list(signals)[1:], 16))


def format_signal_table(signals: Sequence[str]) -> str:
    """Numbered signal names after the first, seven to a line."""
    cells = [f"{number:>2} {name:<8}" for number, name in enumerate(list(signals)[1:], start=1)]
    return "\n".join("".join(chunk).rstrip() for chunk in _chunks(cells, 7))


def all_signals() -> list[str]:
    """Signal names indexed by number, with ``EXIT`` for 0."""
    if sys.platform.startswith("linux"):
        return list(_LINUX_SIGNALS)
    names = ["EXIT"]
    seen = set()
    for sig in sorted(signal.Signals, key=lambda s: s.value):
        if 0 < sig.value < signal.NSIG and sig.value not in seen:
            seen.add(sig.value)
            names.append(sig.name[len("SIG"):])
    return names


def collect_pids(targets: Iterable[SelectedTarget]) -> list[int]:
    """The distinct pids selected by any target, in ascending order."""
    return sorted({pid for target in targets for pid in target.to_pids()})


def _tty_name(number: int) -> str:
    major = (number >> 8) & 0xFFF
    minor = (number & 0xFF) | ((number >> 12) & 0xFFF00)
    if major == 4:
        return f"tty{minor}" if minor < 64 else f"ttyS{minor - 64}"
    if 136 <= major <= 143:
        return f"pts/{(major - 136) * 256 + minor}"
    return "?"


def _user_name(proc: psutil.Process) -> str:
    try:
        uid = proc.uids().real
    except (psutil.Error, AttributeError):
        return "?"
    try:
        import pwd

        return pwd.getpwuid(uid).pw_name
    except (ImportError, KeyError):
        return "?"


def _command_name(proc: psutil.Process) -> str:
    try:
        exe = proc.exe()
    except psutil.Error:
        return "?"
    return os.path.basename(exe) if exe else "?"


def _render_clean_table(rows: Sequence[Sequence[str]]) -> str:
    if not rows:
        return ""
    widths = [max(len(row[column]) for row in rows) for column in range(len(rows[0]))]
    return "".join(
        "".join(f" {cell.ljust(width)} " for cell, width in zip(row, widths)) + "\n"
        for row in rows
    )


def construct_verbose_result(
    pids: Sequence[int], results: Sequence[Optional[ActionResult]]
) -> str:
    """A borderless table of terminal, user, pid, command and outcome per changed process."""
    rows = []
    for pid, result in zip(pids, results):
        if result is None:
            continue
        try:
            proc = psutil.Process(pid)
            tty = tty_number_of(pid)
        except (psutil.Error, OSError, ValueError, IndexError):
            continue
        rows.append([_tty_name(tty), _user_name(proc), str(pid), _command_name(proc), str(result)])
    return _render_clean_table(rows)


def _pid(text: str) -> int:
    value = int(text)
    if not 0 <= value <= 0xFFFF_FFFF:
        raise argparse.ArgumentTypeError(f"invalid pid: {text!r}")
    return value


def _build_parser() -> _Parser:
    parser = _Parser(
        prog="snice",
        description="Send a signal or report process status.",
        usage="%(prog)s [new priority] [options] <expression>",
    )
    parser.add_argument("priority", nargs="?")
    parser.add_argument("-l", "--list", action="store_true", help="list all signal names")
    parser.add_argument(
        "-L", "--table", action="store_true", help="list all signal names in a nice table"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="explain what is being done")
    parser.add_argument(
        "-c", "--command", action="append", default=[], help="expression is a command name"
    )
    parser.add_argument(
        "-p", "--pid", action="append", type=_pid, default=[],
        help="expression is a process id number",
    )
    parser.add_argument("-t", "--tty", action="append", default=[], help="expression is a terminal")
    parser.add_argument(
        "-u", "--user", action="append", default=[], help="expression is a username"
    )
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


def _targets(args: argparse.Namespace) -> list[SelectedTarget]:
    targets = [SelectedTarget(TargetKind.COMMAND, cmd) for cmd in args.command]
    targets += [SelectedTarget(TargetKind.PID, pid) for pid in args.pid]
    for name in args.tty:
        try:
            targets.append(SelectedTarget(TargetKind.TTY, parse_tty(name)))
        except ValueError:
            continue
    targets += [SelectedTarget(TargetKind.USER, user) for user in args.user]
    return targets


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run snice and return its exit status."""
    raw = list(sys.argv[1:] if argv is None else argv)
    parser = _build_parser()
    if not raw:
        parser.print_help(sys.stderr)
        return 1
    args = parser.parse_args(_split_short_assignments(raw))

    try:
        priority = Priority.default() if args.priority is None else Priority.parse(args.priority)
    except PriorityParseError as error:
        print(f"snice: {error}", file=sys.stderr)
        return 1

    display = SignalDisplay.TABLE if args.table else SignalDisplay.LIST if args.list else None
    if display is not None:
        if os.name == "posix":
            print(display.display(all_signals()))
        return 0

    targets = _targets(args)
    if targets:
        pids = collect_pids(targets)
        results = perform_action(pids, priority)
        if all(result is None for result in results):
            print("snice: no process selection criteria", file=sys.stderr)
            return 1
        if args.verbose:
            print(construct_verbose_result(pids, results).strip())
    return 0


if __name__ == "__main__":
    sys.exit(main())