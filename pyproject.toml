[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "darkfactory"
version = "0.1.0"
description = "Prompt queue components: status checking, HTTP request handlers and a queue directory watcher"
requires-python = ">=3.10"
keywords = ["prompts", "queue", "markdown", "watcher", "status"]
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
    "Topic :: Software Development",
]
dependencies = [
    "watchdog",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["darkfactory"]

[tool.pytest.ini_options]
addopts = "-ra"
