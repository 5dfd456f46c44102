[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mdbridge"
version = "0.1.0"
description = "Relay binary market data messages between a length-prefixed TCP feed and UDP multicast"
requires-python = ">=3.10"
dependencies = []
keywords = ["market data", "multicast", "udp", "tcp", "bridge", "feed"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
    "Topic :: Office/Business :: Financial :: Investment",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
mdbridge-forward = "mdbridge.forwarder:main"
mdbridge-serve = "mdbridge.bridge:main"

[tool.hatch.build.targets.wheel]
packages = ["mdbridge"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
