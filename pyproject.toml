[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "guildbot"
version = "0.1.0"
description = "Command dispatch, autopost settings, anime episode subscriptions, reddit feed settings, emoji statistics and message filters for a chat guild bot"
requires-python = ">=3.10"
dependencies = []
keywords = ["chat", "bot", "guild", "moderation", "filters", "subscriptions"]
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
    "Topic :: Communications :: Chat",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["guildbot"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
