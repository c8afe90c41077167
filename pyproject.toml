[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "probewatch"
version = "0.1.0"
description = "Health-check building blocks: value extraction from documents, expression evaluation, PID files, log settings, YAML config merging and notification channels."
requires-python = ">=3.10"
keywords = ["monitoring", "health-check", "xpath", "expression", "pid-file", "notification"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
]
dependencies = [
    "pyyaml>=6.0",
    "lxml>=4.9",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
]

[tool.hatch.build.targets.wheel]
packages = ["probewatch"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
