[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "devregistry"
version = "0.1.0"
description = "A small HTTP JSON service for registering devices and the locations they belong to, backed by SQLite."
requires-python = ">=3.10"
dependencies = []
keywords = ["devices", "registry", "inventory", "sqlite", "rest", "http", "json"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Web Environment",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
devregistry = "devregistry.server:main"

[tool.hatch.build.targets.wheel]
packages = ["devregistry"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
