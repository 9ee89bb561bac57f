[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "carbonch"
version = "0.11.8"
description = "Graphite metrics toolkit for ClickHouse RowBinary storage: tag normalisation, RowBinary encoding and decoding, and a file inspection command"
requires-python = ">=3.10"
dependencies = [
    "lz4",
]
keywords = [
    "graphite",
    "clickhouse",
    "carbon",
    "metrics",
    "rowbinary",
    "tags",
]
classifiers = [
    "Development Status :: 4 - Beta",
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
    "Topic :: System :: Monitoring",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
carbonch = "carbonch.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["carbonch"]

[tool.hatch.build.targets.sdist]
include = [
    "carbonch",
    "tests",
    "README.md",
    "pyproject.toml",
]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
