[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cacaokit"
version = "0.1.0"
description = "Building blocks for CACAO playbook steps: HTTP request construction, STIX comparison evaluation and variable handling"
requires-python = ">=3.10"
dependencies = []
keywords = ["cacao", "playbook", "stix", "soar", "security", "automation"]
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
    "Topic :: Security",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["cacaokit"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
