[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fuffa"
version = "0.1.0"
description = "Web fuzzing building blocks: wordlist and command inputs, response matchers and filters, an HTTP runner, scrapers and report writers"
requires-python = ">=3.10"
keywords = [
    "fuzzing",
    "web",
    "http",
    "content-discovery",
    "wordlist",
    "security-testing",
    "vhost",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Information Technology",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP",
    "Topic :: Security",
    "Topic :: Software Development :: Testing",
]
dependencies = [
    "requests>=2.28",
    "brotli>=1.0",
    "beautifulsoup4>=4.11",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
    "responses>=0.23",
]

[tool.hatch.build.targets.wheel]
packages = ["fuffa"]

[tool.hatch.build.targets.sdist]
include = ["fuffa", "tests"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
ignore_missing_imports = true

[tool.coverage.run]
source = ["fuffa"]
branch = true
