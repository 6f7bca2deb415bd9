[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "nfsping"
version = "0.1.0"
description = "Measure NFS server availability and latency with ONC RPC null calls"
requires-python = ">=3.10"
dependencies = []
keywords = ["nfs", "rpc", "ping", "monitoring", "latency", "nagios", "graphite", "statsd"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking :: Monitoring",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
nfsping = "nfsping.cli:main"
nfsup = "nfsping.nfsup:main"

[tool.hatch.build.targets.wheel]
packages = ["nfsping"]

[tool.pytest.ini_options]
addopts = "-ra"
