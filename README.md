# procsuite

Command-line tools for looking at and adjusting running processes and the
kernel, mainly on Linux. Each reads `/proc` directly or through `psutil`.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Commands

- `vmstat`: print one report of runnable and blocked processes, memory, swap,
  I/O, interrupts and context switches, and CPU shares. Rates are averages
  since boot.
- `snice [PRIORITY] [-c COMMAND] [-p PID] [-t TTY] [-u USER] [-v]`: change the
  nice value of the selected processes. `+N` raises it, `-N` lowers it, a
  plain `N` sets it; the default is `+4`. `-v` prints a table of terminal,
  user, pid, command and outcome. `-l` lists the signal names and `-L` prints
  them as a numbered table.
- `sysctl [-a] [-n | -N] [-e] [-q] VARIABLE[=VALUE] ...`: read or write kernel
  parameters under `/proc/sys`. `-a` (also `-A`, `-X`) shows every variable,
  `-n` prints only values, `-N` only names, `-e` hides errors and `-q` keeps
  quiet when setting. `-o` and `-x` are accepted and do nothing.
- `top [-p PIDLIST] [-U USER | -u EUSER] [-E SCALE] [-w COLUMNS]`: print a
  single snapshot: a summary header (time, uptime, users, load, tasks, CPU,
  memory and swap) followed by the process table. `-E` takes one of
  `k m g t p e` for the memory unit (MiB otherwise); `-w` cuts or pads every
  table line to the given width.
- `tload [-d SECS]`: draw the load average history in the terminal, sampling
  every `SECS` seconds (default 5). Stop it with Ctrl+C; it then exits with
  status 130.
- `w [-h] [-s] [-o]`: show logged-in users with terminal, login time, idle
  time, JCPU, PCPU and command line. `-h` drops the header, `-s` uses the
  short layout, `-o` the old idle-time style.

Every command also runs as `python -m procsuite.<command>`.

## Library use

```python
from procsuite.priority import Priority
from procsuite.vmstat_parser import parse_cpu_load
from procsuite.w import format_time_elapsed

Priority.parse("-4")                    # lower the nice value by 4
str(Priority.default())                 # "+4"
format_time_elapsed(18 * 3600 + 18 * 60, False)   # "18:18m"

load = parse_cpu_load("cpu  10 0 10 80 0 0 0 0 0 0\n")
load.idle                               # 80.0
```

Other building blocks include `procsuite.sysctl.handle_one_arg`,
`procsuite.vmstat.concat_sections`, `procsuite.top.render_table`,
`procsuite.tload_tui.render_frame` and `procsuite.w.read_utmp_records`.

## What it does not do

- `vmstat` prints a single report; it takes no delay or count, and outside
  Linux it prints empty lines.
- `sysctl` works only on Linux.
- `snice` only changes priorities; it lists signal names but sends no signals.
  Priority changes are made only on Linux.
- `top` is not interactive. The `NI`, `VIRT`, `RES` and `SHR` columns show
  `TODO`, and `-O` is accepted but lists nothing.
- `tload` accepts `-m` and `-s` but draws the same chart regardless.
- `w` accepts `-u`, `-f`, `-i` and `-p` but they change nothing; it shows no
  remote host column. Sessions are listed only on Linux.