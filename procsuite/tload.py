"""Graphic representation of the system load average."""

from __future__ import annotations

import argparse
import shutil
import sys
import threading
import time
from collections import deque
from dataclasses import dataclass
from os import PathLike
from pathlib import Path
from typing import Optional, Sequence, Union

from procsuite.tload_tui import render_frame

_VERSION = "0.0.1"
_LOADAVG = Path("/proc/loadavg")
HISTORY_CAPACITY = 10240

StrPath = Union[str, "PathLike[str]"]


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


@dataclass(frozen=True)
class SystemLoadAvg:
    """Load averages over the last 1, 5 and 10 minutes."""

    last_1: float = 0.0
    last_5: float = 0.0
    last_10: float = 0.0

    @classmethod
    def parse(cls, text: str) -> SystemLoadAvg:
        """Read the first three space separated values of loadavg text."""
        parts = text.split(" ")
        if len(parts) < 3:
            raise ValueError(f"malformed load average: {text!r}")
        return cls(float(parts[0]), float(parts[1]), float(parts[2]))


def read_load_avg(path: Optional[StrPath] = None) -> SystemLoadAvg:
    """The current load averages; zeros where the system offers none."""
    if path is None:
        if not sys.platform.startswith("linux"):
            return SystemLoadAvg()
        path = _LOADAVG
    return SystemLoadAvg.parse(Path(path).read_text())


class LoadHistory:
    """A bounded, thread-safe record of load samples, oldest first."""

    def __init__(self, capacity: int = HISTORY_CAPACITY) -> None:
        self._samples: deque[SystemLoadAvg] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def push(self, sample: SystemLoadAvg) -> None:
        """Add a sample, dropping the oldest one when full."""
        with self._lock:
            self._samples.append(sample)

    def snapshot(self) -> list[SystemLoadAvg]:
        """A copy of the samples held now."""
        with self._lock:
            return list(self._samples)

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)


def _non_negative(text: str) -> int:
    if not (text.isascii() and text.isdigit()):
        raise argparse.ArgumentTypeError(f"invalid value '{text}'")
    return int(text)


def _build_parser() -> _Parser:
    parser = _Parser(prog="tload", description="Graphic representation of system load average.")
    parser.add_argument("-d", "--delay", metavar="secs", type=_non_negative, default=5,
                        help="update delay in seconds")
    parser.add_argument("-m", "--modern", action="store_true", help="modern look")
    parser.add_argument("-s", "--scale", metavar="num", type=_non_negative, default=5,
                        help="vertical scale")
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {_VERSION}")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Draw the load history until interrupted with Ctrl+C."""
    args = _build_parser().parse_args(argv)

    history = LoadHistory()
    history.push(read_load_avg())
    stop = threading.Event()

    def sample() -> None:
        while not stop.wait(args.delay):
            history.push(read_load_avg())

    threading.Thread(target=sample, daemon=True).start()

    out = sys.stdout
    out.write("\x1b[?1049h\x1b[?25l")
    out.flush()
    previous = None
    try:
        while True:
            size = shutil.get_terminal_size()
            frame = render_frame(history.snapshot(), size.columns, size.lines)
            if frame != previous:
                out.write("\x1b[H" + frame)
                out.flush()
                previous = frame
            time.sleep(0.01)
    except KeyboardInterrupt:
        pass
    finally:
        stop.set()
        out.write("\x1b[?25h\x1b[?1049l")
        out.flush()
    return 130


if __name__ == "__main__":
    sys.exit(main())