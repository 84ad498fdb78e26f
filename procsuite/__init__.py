"""Process and system monitoring tools: vmstat, snice, sysctl, top, tload and w."""

__version__ = "0.0.1"