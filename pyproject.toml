[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "subtrack"
version = "0.1.0"
description = "REST API for tracking user subscriptions and reporting their monthly cost"
requires-python = ">=3.10"
keywords = ["subscriptions", "rest", "api", "flask", "sqlalchemy", "report"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Web Environment",
    "Framework :: Flask",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Office/Business :: Financial",
]
dependencies = [
    "flask>=2.3",
    "sqlalchemy>=2.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
]

[project.scripts]
subtrack = "subtrack.app:main"

[tool.hatch.build.targets.wheel]
packages = ["subtrack"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
