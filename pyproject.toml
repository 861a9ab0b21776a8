[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "minnow"
version = "0.1.0"
description = "Networking toolkit: Ethernet, ARP, IPv4 and TCP wire formats, Internet checksums, sockets and a poll-based event loop"
requires-python = ">=3.10"
dependencies = []
keywords = ["networking", "tcp", "ipv4", "ethernet", "arp", "checksum", "sockets", "event-loop"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["minnow"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
