[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "cajasimple"
version = "0.1.0"
description = "A small cash-book service that records suppliers, debts, payments and sales in SQLite behind a JSON HTTP API."
requires-python = ">=3.10"
keywords = ["cash book", "accounting", "suppliers", "debts", "payments", "sales", "sqlite", "rest api"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Web Environment",
    "Framework :: Flask",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial :: Accounting",
]
dependencies = [
    "flask",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
cajasimple = "cajasimple.app:main"

[tool.setuptools.packages.find]
include = ["cajasimple*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
