[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "stevekit"
version = "0.1.0"
description = "RBAC access sets, schema attributes, an in-memory cluster cache and request metrics for a Kubernetes resource API server"
requires-python = ">=3.10"
dependencies = []
keywords = ["kubernetes", "rbac", "access-control", "cache", "metrics", "schema"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration :: Authentication/Directory",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["stevekit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
