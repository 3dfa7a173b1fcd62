[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "busseatwatch"
version = "0.1.0"
description = "Decide when to alert about free seats on highway buses, fingerprint timetable state, and manage the tracking database schema."
requires-python = ">=3.10"
dependencies = []
keywords = ["bus", "seats", "availability", "notifications", "sqlite", "migrations"]
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
    "Topic :: Internet :: WWW/HTTP",
    "Topic :: Database",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
busseatwatch-migrate = "busseatwatch.migrator:main"

[tool.hatch.build.targets.wheel]
packages = ["busseatwatch"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]
