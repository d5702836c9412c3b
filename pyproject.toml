[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "goferbot"
version = "0.1.0"
description = "Building blocks for a Telegram community bot: Bot API client, webhook WSGI app, template replies, command answers and SQLite activity statistics"
requires-python = ">=3.11"
keywords = ["telegram", "bot", "webhook", "community", "statistics"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Web Environment",
    "Intended Audience :: Developers",
    "Natural Language :: English",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Chat",
]
dependencies = [
    "requests>=2.28",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
    "responses>=0.23",
]

[tool.hatch.build.targets.wheel]
packages = ["goferbot"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
warn_redundant_casts = true
