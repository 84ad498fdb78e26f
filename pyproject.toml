[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "procsuite"
version = "0.0.1"
description = "Process and system monitoring tools: vmstat, snice, sysctl, top, tload and w"
requires-python = ">=3.10"
dependencies = ["psutil"]
keywords = ["procps", "vmstat", "top", "sysctl", "snice", "tload", "w", "monitoring"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
vmstat = "procsuite.vmstat:main"
snice = "procsuite.snice:main"
sysctl = "procsuite.sysctl:main"
top = "procsuite.top:main"
tload = "procsuite.tload:main"
w = "procsuite.w:main"

[tool.hatch.build.targets.wheel]
packages = ["procsuite"]

[tool.pytest.ini_options]
addopts = "-ra"
