[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "flowwallet"
version = "0.9.0"
description = "Key management, encryption, system settings and SQLite schema migrations for a custodial Flow wallet service"
requires-python = ">=3.10"
dependencies = [
    "cryptography",
]
keywords = ["flow", "wallet", "custodial", "keys", "ecdsa", "aes-gcm", "sqlite", "migrations"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial",
    "Topic :: Security :: Cryptography",
    "Topic :: Database",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["flowwallet"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
