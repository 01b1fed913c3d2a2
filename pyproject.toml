[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "joinexec"
version = "0.1.0"
description = "In-memory query execution building blocks: typed nullable columns, filter predicates, streaming CSV parsing and hash joins"
requires-python = ">=3.10"
dependencies = []
keywords = ["database", "hash join", "query execution", "csv", "columnar", "bitmap"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Database Engines/Servers",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = [
    "pytest",
    "hypothesis",
]

[tool.hatch.build.targets.wheel]
packages = ["joinexec"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
