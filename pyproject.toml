[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "columnstore"
version = "0.1.0"
description = "Columnar storage primitives: typed columns, min/max indexes, batch matching, predicates and block compression"
requires-python = ">=3.10"
dependencies = [
    "lz4",
    "zstandard",
]
keywords = ["columnar", "column store", "predicate", "index", "compression", "lz4", "zstd"]
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
    "Topic :: Database :: Database Engines/Servers",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["columnstore"]

[tool.pytest.ini_options]
addopts = "-ra"
