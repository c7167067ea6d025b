[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "loopserve"
version = "0.1.0"
description = "A small asyncio HTTP server with rolling and asynchronous file logging, and a simulated multi-tier memory pool."
requires-python = ">=3.10"
dependencies = []
keywords = ["http", "server", "logging", "async-logging", "memory-pool", "log-rotation"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: System :: Logging",
]

[project.optional-dependencies]
test = ["pytest", "pytest-asyncio"]

[project.scripts]
loopserve = "loopserve.http_server:main"

[tool.hatch.build.targets.wheel]
packages = ["loopserve"]

[tool.pytest.ini_options]
addopts = "-ra"
