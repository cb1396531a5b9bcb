[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "olake"
version = "0.1.0"
description = "Building blocks for database replication connectors: streams, catalogs, state, schema evolution and writer pools."
requires-python = ">=3.11"
dependencies = []
keywords = [
    "replication",
    "etl",
    "cdc",
    "data-pipeline",
    "schema-evolution",
    "connector",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["olake"]

[tool.hatch.build.targets.sdist]
include = ["olake", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
