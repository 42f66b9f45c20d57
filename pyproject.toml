[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "invoicedocs"
version = "0.1.0"
description = "HTTP service and helpers for looking up incoming e-invoices and reading their stored UBL documents"
requires-python = ">=3.10"
keywords = ["invoice", "e-invoice", "ubl", "rest", "fastapi", "object-store", "xz", "xml"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Framework :: FastAPI",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Office/Business :: Financial :: Accounting",
]
dependencies = [
    "fastapi>=0.110",
    "uvicorn>=0.29",
    "pydantic>=2.0",
]

[project.optional-dependencies]
test = [
    "pytest>=8.0",
    "pytest-asyncio>=0.23",
    "httpx>=0.27",
]

[project.scripts]
invoicedocs-server = "invoicedocs.server:main"

[tool.hatch.build.targets.wheel]
packages = ["invoicedocs"]

[tool.hatch.build.targets.sdist]
include = ["invoicedocs", "tests", "pyproject.toml", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
