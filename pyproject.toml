[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wsdemo"
version = "0.0.1"
description = "A minimal WebSocket demo server and client built on aiohttp"
requires-python = ">=3.10"
keywords = ["websocket", "aiohttp", "demo", "server", "client"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Framework :: AsyncIO",
    "Framework :: aiohttp",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP",
]
dependencies = [
    "aiohttp>=3.8",
]

[project.optional-dependencies]
test = [
    "pytest>=7",
    "pytest-asyncio>=0.21",
    "aiohttp>=3.8",
]

[project.scripts]
ws-server = "wsdemo.server:main"
ws-client = "wsdemo.client:main"

[tool.hatch.build.targets.wheel]
packages = ["wsdemo"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
