[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ananas_rpc"
version = "0.1.0"
description = "Wire codecs for a lightweight RPC framework: length-prefixed frames, HTTP/1.1 and Redis protocol parsers, endpoints and name-service encoding"
requires-python = ">=3.10"
dependencies = []
keywords = ["rpc", "codec", "http", "redis", "resp", "protocol", "name-service", "framing"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Object Brokering",
    "Topic :: Internet :: WWW/HTTP",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["ananas_rpc"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
