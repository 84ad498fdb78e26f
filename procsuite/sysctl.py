"""Show or modify kernel parameters at runtime."""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import Optional, Sequence, Union

_VERSION = "0.0.1"

PROC_SYS_ROOT = Path("/proc/sys")

StrPath = Union[str, "os.PathLike[str]"]


class SysctlError(Exception):
    """A kernel parameter could not be read or written."""

    def __init__(self, context: str, cause: OSError) -> None:
        reason = cause.strerror or (os.strerror(cause.errno) if cause.errno else str(cause))
        super().__init__(f"{context}: {reason}")
        self.context = context
        self.cause = cause


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def _root(root: Optional[StrPath]) -> Path:
    return Path(PROC_SYS_ROOT if root is None else root)


def normalize_var(var: str) -> str:
    """Write a variable name with dots instead of slashes."""
    return var.replace("/", ".")


def variable_path(var: str, root: Optional[StrPath] = None) -> Path:
    """The file under the sysctl tree that holds a variable."""
    return _root(root) / var.replace(".", "/")


def get_sysctl(var: str, root: Optional[StrPath] = None) -> str:
    """Read a variable's value without trailing whitespace."""
    return variable_path(var, root).read_text().rstrip()


def set_sysctl(var: str, value: str, root: Optional[StrPath] = None) -> None:
    """Write a value to an existing variable."""
    fd = os.open(variable_path(var, root), os.O_WRONLY | os.O_TRUNC)
    with os.fdopen(fd, "w") as handle:
        handle.write(value)


def get_all_sysctl_variables(root: Optional[StrPath] = None) -> list[str]:
    """Every variable file under the tree, as paths relative to its root."""
    base = _root(root)
    found: list[str] = []

    def report(error: OSError) -> None:
        print(f"sysctl: {error}", file=sys.stderr)

    for directory, dirnames, filenames in os.walk(base, onerror=report):
        dirnames.sort()
        for name in sorted(filenames):
            path = Path(directory) / name
            if path.is_file() and not path.is_symlink():
                found.append(path.relative_to(base).as_posix())
    return found


def handle_one_arg(
    var_or_assignment: str, quiet: bool = False, root: Optional[StrPath] = None
) -> Optional[tuple[str, str]]:
    """Read ``VAR`` or write ``VAR=VALUE``; return the name and value to show."""
    name, sep, value = var_or_assignment.partition("=")
    var = normalize_var(name)
    if sep:
        try:
            set_sysctl(var, value, root)
        except OSError as error:
            raise SysctlError(f"error writing key '{var}'", error) from error
        return None if quiet else (var, value)
    try:
        current = get_sysctl(var, root)
    except OSError as error:
        raise SysctlError(f"error reading key '{var}'", error) from error
    return var, current


def _build_parser() -> _Parser:
    parser = _Parser(prog="sysctl", description="Show or modify kernel parameters at runtime.")
    parser.add_argument("variables", nargs="*", metavar="VARIABLE[=VALUE]")
    parser.add_argument("-a", "-A", "-X", "--all", action="store_true", help="Display all variables")
    parser.add_argument("-N", "--names", action="store_true", help="Only print names")
    parser.add_argument("-n", "--values", action="store_true", help="Only print values")
    parser.add_argument("-e", "--ignore", action="store_true", help="Ignore errors")
    parser.add_argument("-q", "--quiet", action="store_true", help="Do not print when setting variables")
    parser.add_argument("-o", dest="noop_o", action="store_true", help="Does nothing, for BSD compatibility")
    parser.add_argument("-x", dest="noop_x", action="store_true", help="Does nothing, for BSD compatibility")
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {_VERSION}")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run sysctl and return its exit status."""
    parser = _build_parser()
    args = parser.parse_intermixed_args(argv)

    if not sys.platform.startswith("linux"):
        print("sysctl: `sysctl` currently only supports Linux.", file=sys.stderr)
        return 1

    if args.all:
        variables = get_all_sysctl_variables()
    elif args.variables:
        variables = list(args.variables)
    else:
        parser.print_help()
        return 0

    status = 0
    for var_or_assignment in variables:
        try:
            result = handle_one_arg(var_or_assignment, args.quiet)
        except SysctlError as error:
            if not args.ignore:
                print(f"sysctl: {error}", file=sys.stderr)
                status = 1
            continue
        if result is None:
            continue
        var, value = result
        for line in value.split("\n"):
            if args.names:
                print(var)
            elif args.values:
                print(line)
            else:
                print(f"{var} = {line}")
    return status


if __name__ == "__main__":
    sys.exit(main())