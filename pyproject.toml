[build-system]
requires = ["setuptools>=61.0"]
build-backend = "setuptools.build_meta"

[project]
name = "wechaty-puppet"
version = "0.1.0"
description = "Building blocks for chatbot puppets: payload schemas, file boxes, an event emitter, message fixes and memory cards"
requires-python = ">=3.10"
dependencies = []
keywords = ["chatbot", "wechaty", "puppet", "filebox", "memory-card", "event-emitter"]
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
    "Topic :: Communications :: Chat",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.setuptools.packages.find]
include = ["wechaty_puppet*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
