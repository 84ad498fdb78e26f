"""The summary lines printed above top's process table."""

from __future__ import annotations

import sys
import time
from datetime import datetime
from typing import Iterable, Optional

import psutil

from procsuite.vmstat_parser import CpuLoad, current_cpu_load

_KIB = 1024
_UNITS = {
    "k": (_KIB, "KiB"),
    "m": (_KIB**2, "MiB"),
    "g": (_KIB**3, "GiB"),
    "t": (_KIB**4, "TiB"),
    "p": (_KIB**5, "PiB"),
    "e": (1_152_921_504_606_846_976, "EiB"),
}


def memory_unit(scale: Optional[str]) -> tuple[int, str]:
    """The divisor and name for a scale letter; MiB when absent or unknown."""
    if scale is None:
        return _UNITS["m"]
    return _UNITS.get(scale, _UNITS["m"])


def format_memory(memory_bytes: int, unit: int) -> float:
    """An amount of memory in the given unit."""
    return memory_bytes / unit


def format_task_summary(statuses: Iterable[str]) -> str:
    """Count processes by state."""
    counts = {"total": 0, "running": 0, "sleeping": 0, "stopped": 0, "zombie": 0}
    for status in statuses:
        counts["total"] += 1
        if status == psutil.STATUS_RUNNING:
            counts["running"] += 1
        elif status == psutil.STATUS_SLEEPING:
            counts["sleeping"] += 1
        elif status == psutil.STATUS_STOPPED:
            counts["stopped"] += 1
        elif status == psutil.STATUS_ZOMBIE:
            counts["zombie"] += 1
    return (
        f"Tasks: {counts['total']} total, {counts['running']} running, "
        f"{counts['sleeping']} sleeping, {counts['stopped']} stopped, {counts['zombie']} zombie"
    )


def format_cpu_line(cpu_load: CpuLoad) -> str:
    """The ``%Cpu(s)`` summary line."""
    return (
        f"%Cpu(s):  {cpu_load.user:.1f} us, {cpu_load.system:.1f} sy, {cpu_load.nice:.1f} ni, "
        f"{cpu_load.idle:.1f} id, {cpu_load.io_wait:.1f} wa, {cpu_load.hardware_interrupt:.1f} hi, "
        f"{cpu_load.software_interrupt:.1f} si, {cpu_load.steal_time:.1f} st"
    )


def format_memory_lines(
    unit_name: str,
    unit: int,
    total: int,
    free: int,
    used: int,
    available: int,
    swap_total: int,
    swap_free: int,
    swap_used: int,
) -> str:
    """The two memory and swap summary lines."""

    def scaled(value: int) -> str:
        return f"{format_memory(value, unit):8.1f}"

    return (
        f"{unit_name} Mem : {scaled(total)} total, {scaled(free)} free, "
        f"{scaled(used)} used, {scaled(available - free)} buff/cache\n"
        f"{unit_name} Swap: {scaled(swap_total)} total, {scaled(swap_free)} free, "
        f"{scaled(swap_used)} used, {scaled(available)} avail Mem"
    )


def format_nusers(count: int) -> str:
    """The number of logged-in users, e.g. ``1 user`` or ``3 users``."""
    return f"{count} user" if count <= 1 else f"{count} users"


def format_uptime(seconds: float) -> str:
    """Time since boot as shown by uptime."""
    if seconds < 0:
        raise ValueError("could not retrieve system uptime")
    total = int(seconds)
    days, rest = divmod(total, 86400)
    hours, rest = divmod(rest, 3600)
    minutes = rest // 60
    if days == 1:
        return f"up {days} day, {hours:2}:{minutes:02}"
    if days > 1:
        return f"up {days} days, {hours:2}:{minutes:02}"
    return f"up  {hours:2}:{minutes:02}"


def _uptime() -> str:
    try:
        return format_uptime(time.time() - psutil.boot_time())
    except ValueError:
        return ""


def _users() -> str:
    try:
        return format_nusers(len(psutil.users()))
    except (psutil.Error, OSError):
        return format_nusers(0)


def _load_average() -> str:
    try:
        one, five, fifteen = psutil.getloadavg()
    except (OSError, AttributeError):
        return ""
    return f"load average: {one:.2f}, {five:.2f}, {fifteen:.2f}"


def _task() -> str:
    statuses = []
    for proc in psutil.process_iter(["status"]):
        statuses.append(proc.info["status"] or "")
    return format_task_summary(statuses)


def _cpu_load_from_psutil() -> CpuLoad:
    times = psutil.cpu_times()
    names = ("user", "nice", "system", "idle", "iowait", "irq", "softirq", "steal", "guest", "guest_nice")
    values = [float(getattr(times, name, 0.0)) for name in names]
    if not values[5]:
        values[5] = float(getattr(times, "interrupt", 0.0))
    if not values[6]:
        values[6] = float(getattr(times, "dpc", 0.0))
    total = sum(values)
    shares = [value / total * 100.0 if total else 0.0 for value in values]
    return CpuLoad(*shares)


def _cpu() -> str:
    if sys.platform.startswith("linux"):
        return format_cpu_line(current_cpu_load())
    return format_cpu_line(_cpu_load_from_psutil())


def _memory(scale: Optional[str]) -> str:
    unit, unit_name = memory_unit(scale)
    memory = psutil.virtual_memory()
    swap = psutil.swap_memory()
    return format_memory_lines(
        unit_name,
        unit,
        memory.total,
        memory.free,
        memory.used,
        memory.available,
        swap.total,
        swap.free,
        swap.used,
    )


def header(scale_summary_mem: Optional[str] = None) -> str:
    """The five summary lines: time and load, tasks, CPU, memory and swap."""
    now = datetime.now().strftime("%H:%M:%S")
    return (
        f"top - {now} {_uptime()}, {_users()}, {_load_average()}\n"
        f"{_task()}\n"
        f"{_cpu()}\n"
        f"{_memory(scale_summary_mem)}"
    )