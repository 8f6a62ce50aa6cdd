[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "p2pstorage"
version = "0.1.0"
description = "Building blocks for a peer-to-peer file store: content-addressed storage with encryption, rate limiting, peer scoring and a JSON message protocol."
requires-python = ">=3.10"
keywords = ["p2p", "storage", "content-addressed", "encryption", "rate-limit", "file-sharing"]
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
    "Topic :: Communications :: File Sharing",
]
dependencies = [
    "cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["p2pstorage"]

[tool.pytest.ini_options]
addopts = "-ra"
