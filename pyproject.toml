[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "smppproxy"
version = "0.0.1"
description = "A TCP proxy for SMPP traffic that relays clients round-robin to upstream servers"
requires-python = ">=3.10"
dependencies = []
keywords = ["smpp", "proxy", "tcp", "round-robin", "asyncio", "sms"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Framework :: AsyncIO",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Telecommunications Industry",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: Proxy Servers",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
smppproxy = "smppproxy.cli:main"

[tool.setuptools.packages.find]
include = ["smppproxy*"]

[tool.pytest.ini_options]
addopts = "-ra"
