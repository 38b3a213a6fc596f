[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sailscore"
version = "0.1.0"
description = "Service building blocks: unified JSON responses, WSGI request logging, a message queue client, queue messages and structured log shipping."
requires-python = ">=3.10"
dependencies = []
keywords = ["wsgi", "middleware", "message-queue", "logging", "response"]
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
    "Topic :: Software Development :: Libraries :: Application Frameworks",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["sailscore"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
