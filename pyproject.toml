[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tightrope"
version = "0.1.0"
description = "Configuration auditor that scans YAML, JSON and TOML files for key conflicts, shadowing, plain-text secrets, deprecated fields and redundant values"
requires-python = ">=3.11"
dependencies = [
    "pyyaml",
]
keywords = ["configuration", "audit", "yaml", "json", "toml", "secrets"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Quality Assurance",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
tightrope = "tightrope.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["tightrope"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"
