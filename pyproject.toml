[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rfoperator"
version = "1.1.1"
description = "Reconciliation logic for Redis failover clusters: resource model, validation, health checks and healing."
requires-python = ">=3.10"
dependencies = []
keywords = ["redis", "sentinel", "failover", "operator", "kubernetes", "reconciliation"]
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
    "Topic :: System :: Clustering",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["rfoperator"]

[tool.hatch.build.targets.sdist]
include = ["rfoperator", "tests"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
